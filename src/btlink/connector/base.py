import logging
from abc import abstractmethod
from enum import Enum

from btlink.conduit.base import Conduit
from btlink.support.events import EventSource

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """ The kinds of failure reported by the connection manager. """
    NO_ADAPTER = 'no adapter'
    ADAPTER_DISABLED = 'adapter disabled'
    NO_PEER_FOUND = 'no peer found'
    CONNECT_FAILED = 'connect failed'
    SEND_FAILED = 'send failed'
    SERVER_BIND_FAILED = 'server bind failed'
    CLOSE_FAILED = 'close failed'
    INVALID_STATE = 'invalid state'


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. The kind attribute tags the failure. """
    kind = None

    def __init__(self, message=None):
        super().__init__(message or (self.kind.value if self.kind else None))


class NoAdapterError(ConnectorError):
    """ There is no radio adapter. Not recoverable without hardware. """
    kind = ErrorKind.NO_ADAPTER


class AdapterDisabledError(ConnectorError):
    """ The radio adapter is present but powered off. The user can enable it and retry. """
    kind = ErrorKind.ADAPTER_DISABLED


class NoPeerFoundError(ConnectorError):
    """ No paired peers, none matching the requested name, or no peer selected. """
    kind = ErrorKind.NO_PEER_FOUND


class ConnectFailedError(ConnectorError, IOError):
    """ The transport failed to open the socket to the peer. """
    kind = ErrorKind.CONNECT_FAILED


class SendFailedError(ConnectorError):
    """ Data could not be sent: no live link, no usable adapter, no selected peer or a write error. """
    kind = ErrorKind.SEND_FAILED


class ServerBindFailedError(ConnectorError):
    """ The listening endpoint could not be created. """
    kind = ErrorKind.SERVER_BIND_FAILED


class InvalidStateError(ConnectorError):
    """ The operation conflicts with the role the manager is already in. """
    kind = ErrorKind.INVALID_STATE


class CloseFailedError(ConnectorError):
    """ One or more resources raised an error while closing. All were still closed. """
    kind = ErrorKind.CLOSE_FAILED

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("%s: %s" % (self.kind.value, "; ".join(str(e) for e in self.errors)))


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        :return: True if this connector is connected to its underlying resource. False otherwise.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def available(self) -> bool:
        """ Determines if the underlying resource for this connector is available. """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint."""

    def __init__(self):
        super().__init__()
        self._conduit = None

    @property
    def available(self):
        return False if self.connected else self._try_available()

    @property
    def connected(self):
        return self._conduit is not None and self._conduit.open

    def connect(self):
        if self.connected:
            return

        if not self.available:
            raise ConnectFailedError("%s is not available" % (self.endpoint,))

        self._conduit = self._connect()
        self.events.fire(ConnectorConnectedEvent(self))

    def disconnect(self):
        """
        Closes the conduit. The connector is disconnected even if closing raises.
        """
        conduit = self._conduit
        if conduit is None:
            return
        self._conduit = None
        try:
            self._disconnect()
            conduit.close()
        finally:
            self.events.fire(ConnectorDisconnectedEvent(self))

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, an exception should be thrown
        """
        raise NotImplementedError

    @abstractmethod
    def _try_available(self):
        """ Determine if this connection is available. This method is only called when
            the connection is disconnected.
        :return: True if the connection is available or False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @abstractmethod
    def _disconnect(self):
        """ perform any actions needed on disconnection.
        The base class takes care of closing the conduit, which happens
        after this method has been called.
        """
        raise NotImplementedError

    @property
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        raises SendFailedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise SendFailedError("%s is not connected" % (self.endpoint,))
