"""
The primitives a Bluetooth stack supplies to the connection manager: the local adapter,
the set of already-paired peers and RFCOMM byte-stream sockets rendezvoused on a service UUID.
"""
from abc import abstractmethod

from btlink.support.mixins import CommonEqualityMixin

# standard Bluetooth serial port profile service ID
SERIAL_PORT_PROFILE_UUID = "00001101-0000-1000-8000-00805f9b34fb"


class AdapterInfo(CommonEqualityMixin):
    """ A snapshot of the local radio adapter. """
    def __init__(self, address, name=None, enabled=True):
        self.address = address
        self.name = name
        self.enabled = enabled


class Peer(CommonEqualityMixin):
    """
    A remote device already paired with the local adapter.
    """
    def __init__(self, name, address):
        self.name = name
        self.address = address

    def key(self):
        """
        >>> Peer('RobotX', '00:11:22:33:44:55').key()
        'RobotX [00:11:22:33:44:55]'
        >>> Peer(None, '00:11:22:33:44:55').key()
        '00:11:22:33:44:55'
        """
        return self.address if not self.name else '%s [%s]' % (self.name, self.address)


class ServerSocket:
    """ A listening endpoint that accepts connections from peers. """

    @abstractmethod
    def accept(self):
        """ blocks until a peer connects.
        :return: a tuple of (socket, address) for the connected peer.
        Raises OSError when the endpoint is closed while waiting. """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        raise NotImplementedError


class Platform:
    """
    Supplies the adapter, paired peers and sockets. Sockets returned by connect() and accept()
    provide recv(), sendall(), shutdown() and close() with the semantics of socket.socket.
    """

    @abstractmethod
    def adapter(self) -> AdapterInfo:
        """ the current state of the local adapter, or None if there is no adapter. """
        raise NotImplementedError

    @abstractmethod
    def paired_peers(self):
        """ an iterable over the peers paired with the local adapter, in platform order. """
        raise NotImplementedError

    @abstractmethod
    def connect(self, peer: Peer, uuid):
        """ opens a byte-stream socket to the service with the given uuid on the peer.
        Blocks until connected. Raises OSError on failure. """
        raise NotImplementedError

    @abstractmethod
    def listen(self, name, uuid) -> ServerSocket:
        """ binds a listening endpoint advertised under the given service name and uuid.
        Raises OSError on failure. """
        raise NotImplementedError
