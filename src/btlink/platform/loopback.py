"""
An in-process platform. Every connection is a socket.socketpair(): the manager gets one end
and the other end is kept as the remote peer, so tests and demos can read what was sent and
write what should be received.
"""
import logging
import socket
from queue import Queue

from btlink.platform.base import AdapterInfo, Peer, Platform, ServerSocket

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = '00:00:00:00:00:00'

_default_adapter = object()


class LoopbackServerSocket(ServerSocket):
    """
    A listening endpoint. Peers connect by calling dial(), which returns the remote end
    of the new connection.
    """
    def __init__(self, name, uuid):
        self.name = name
        self.uuid = uuid
        self.closed = False
        self._pending = Queue()

    def dial(self, address='AA:BB:CC:DD:EE:FF'):
        if self.closed:
            raise ConnectionRefusedError("server %s is closed" % self.name)
        local, remote = socket.socketpair()
        self._pending.put((local, address))
        return remote

    def accept(self):
        pending = self._pending.get()
        if pending is None:
            raise OSError("server socket %s closed" % self.name)
        return pending

    def close(self):
        if not self.closed:
            self.closed = True
            self._pending.put(None)


class LoopbackPlatform(Platform):
    """
    :param peers: the paired peers, in the order they are reported
    :param adapter_info: the adapter state, None when there is no adapter
    """
    def __init__(self, peers=(), adapter_info=_default_adapter):
        self.peers = list(peers)
        self.adapter_info = AdapterInfo(LOOPBACK_ADDRESS, 'loopback') \
            if adapter_info is _default_adapter else adapter_info
        self.unreachable = set()    # addresses of peers that refuse connections
        self.bind_error = None      # raised by listen() when set
        self.remotes = {}           # peer address to the remote end of the last connection
        self.servers = []

    @classmethod
    def with_peers(cls, *names):
        """
        >>> [p.name for p in LoopbackPlatform.with_peers('RobotX', 'RobotY').paired_peers()]
        ['RobotX', 'RobotY']
        """
        return cls([Peer(name, '00:00:00:00:00:%02X' % (i + 1)) for i, name in enumerate(names)])

    def adapter(self):
        return self.adapter_info

    def paired_peers(self):
        return tuple(self.peers)

    def connect(self, peer: Peer, uuid):
        if peer.address in self.unreachable:
            raise ConnectionRefusedError("peer %s refused the connection" % peer.key())
        local, remote = socket.socketpair()
        self.remotes[peer.address] = remote
        logger.debug("loopback connection to %s for service %s" % (peer.key(), uuid))
        return local

    def remote(self, peer: Peer):
        return self.remotes[peer.address]

    def listen(self, name, uuid):
        if self.bind_error is not None:
            raise self.bind_error
        server = LoopbackServerSocket(name, uuid)
        self.servers.append(server)
        return server

    def close(self):
        """ closes the remote ends of all connections. """
        for remote in self.remotes.values():
            remote.close()
        self.remotes.clear()
