import io
import logging
import socket

from btlink.conduit import base
from btlink.connector.base import CloseFailedError

logger = logging.getLogger(__name__)


class SocketStream(io.RawIOBase):
    """
    A raw stream over a connected socket. Closing the stream leaves the socket open.
    Only recv() and sendall() are used, so any socket-like object will do.
    """

    def __init__(self, sock):
        super().__init__()
        self.sock = sock


class SocketReader(SocketStream):

    def readable(self):
        return True

    def readinto(self, b):
        self._checkClosed()
        data = self.sock.recv(len(b))
        n = len(data)
        b[:n] = data
        return n


class SocketWriter(SocketStream):

    def writable(self):
        return True

    def write(self, b):
        self._checkClosed()
        data = bytes(b)
        self.sock.sendall(data)
        return len(data)


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock):
        """
        :param sock: the client socket that represents the connection
        """
        self.sock = sock
        self.read = SocketReader(sock)
        self.write = SocketWriter(sock)
        self._closed = False

    @property
    def open(self) -> bool:
        return not self._closed

    @property
    def target(self):
        return self.sock

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def unblock(self):
        """
        Shuts down the socket so that a read or write blocked on another thread returns.
        """
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # the peer may have closed the socket already
            pass

    def close(self):
        """
        Closes the output stream, the input stream and the socket. Each is closed even when
        closing a previous one fails; CloseFailedError reports the failures afterwards.
        """
        if self._closed:
            return
        self._closed = True
        errors = []
        for resource in (self.write, self.read):
            try:
                resource.close()
            except OSError as e:
                errors.append(e)
        self.unblock()
        try:
            self.sock.close()
        except OSError as e:
            errors.append(e)
        if errors:
            logger.debug("errors closing socket conduit: %s" % errors)
            raise CloseFailedError(errors)
