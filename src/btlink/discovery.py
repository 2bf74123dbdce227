"""
Selection of a peer among the devices already paired with the local adapter.
"""
import logging

from btlink.adapter import AdapterGate
from btlink.connector.base import NoPeerFoundError
from btlink.platform.base import Peer, Platform

logger = logging.getLogger(__name__)


def matches(peer: Peer, name):
    """
    An empty or missing name matches any peer, otherwise the names must be equal.
    >>> matches(Peer('RobotX', 'addr'), None)
    True
    >>> matches(Peer('RobotX', 'addr'), 'robotx')
    False
    """
    return not name or peer.name == name


class PeerSelector:
    """ Picks a paired peer by exact name, or the first one reported when no name is given. """

    def __init__(self, platform: Platform, gate: AdapterGate=None):
        self.platform = platform
        self.gate = gate or AdapterGate(platform)

    def _fetch_peers(self):
        """ a fresh snapshot of the paired peers """
        return tuple(self.platform.paired_peers())

    def select(self, name=None) -> Peer:
        """
        :param name: the exact (case-sensitive) name of the peer. When empty or None, the first
            peer is taken.
        :return: the selected peer
        Raises the adapter errors when the adapter is not usable, and NoPeerFoundError
        when there are no paired peers or none matches.
        """
        self.gate.check()
        peers = self._fetch_peers()
        logger.debug("Number of paired devices: %d" % len(peers))
        if not peers:
            raise NoPeerFoundError("no paired bluetooth devices")

        for peer in peers:
            logger.debug("Device [%s]" % peer.name)
            if matches(peer, name):
                logger.info("Using bluetooth device %s" % peer.key())
                return peer

        logger.debug("No bluetooth device named [%s] found." % name)
        raise NoPeerFoundError("no paired bluetooth device named '%s'" % name)
