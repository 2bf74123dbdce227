import logging

from btlink.adapter import AdapterGate
from btlink.conduit.base import Conduit
from btlink.conduit.socket_conduit import SocketConduit
from btlink.connector.base import AbstractConnector, ConnectFailedError
from btlink.platform.base import SERIAL_PORT_PROFILE_UUID, Peer, Platform

logger = logging.getLogger(__name__)


class RfcommConnector(AbstractConnector):
    """
    A connector that opens an RFCOMM byte-stream socket to a paired peer.
    """
    def __init__(self, platform: Platform, peer: Peer, uuid=SERIAL_PORT_PROFILE_UUID, report_errors=True):
        """
        :param platform: provides the socket to the peer
        :param peer: the peer to connect to
        :param uuid: the service the socket rendezvous on
        :param report_errors: when False, connection failures are logged at debug level only
        """
        super().__init__()
        self.platform = platform
        self.peer = peer
        self.uuid = uuid
        self._report_errors = report_errors

    @property
    def endpoint(self):
        return self.peer

    def _connect(self) -> Conduit:
        try:
            sock = self.platform.connect(self.peer, self.uuid)
        except OSError as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening socket to %s: %s" % (self.peer.key(), e))
            raise ConnectFailedError("unable to connect to %s: %s" % (self.peer.key(), e)) from e
        logger.info("opened socket to %s" % self.peer.key())
        return SocketConduit(sock)

    def _disconnect(self):
        logger.info("closing socket to %s" % self.peer.key())

    def _try_available(self):
        return AdapterGate(self.platform).usable()
