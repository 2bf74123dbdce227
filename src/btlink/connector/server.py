"""
A single-connection server endpoint. A background worker accepts one peer and reads from it
until stopped, posting what it reads as events.

Worker states: listening (blocked in accept), reading (blocked in read), stopped. The worker
never calls the caller's handlers itself; it posts events to an event source, normally a
QueuedEventSource that the caller publishes on its own thread.
"""
import logging

from btlink.conduit.socket_conduit import SocketConduit
from btlink.connector.base import CloseFailedError
from btlink.platform.base import ServerSocket
from btlink.support.loop import AsyncLoop
from btlink.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class ChunkReceivedEvent(CommonEqualityMixin):
    """ A block of bytes read from the peer in one read, with its decoded text. """
    def __init__(self, text, data=None):
        self.text = text
        self.data = data


class ServerStoppedEvent(CommonEqualityMixin):
    """
    The worker stopped on its own.
    :param reason: PEER_CLOSED when the peer closed the connection, ERROR when accepting or
        reading failed.
    :param error: the exception for ERROR
    """
    PEER_CLOSED = 'peer closed'
    ERROR = 'error'

    def __init__(self, reason, error=None):
        self.reason = reason
        self.error = error


class ServerListener(AsyncLoop):
    """
    Accepts one connection on a listening socket and reads from it on a background thread.

    :param server_socket: the bound, listening endpoint
    :param events: receives ChunkReceivedEvent and ServerStoppedEvent via fire()
    :param buffer_size: the maximum number of bytes read at once
    :param encoding: the encoding used to decode each chunk. Undecodable bytes are replaced.
    """

    def __init__(self, server_socket: ServerSocket, events, buffer_size=100, encoding='ascii'):
        super().__init__(name='btlink-server', log=logger)
        self.server_socket = server_socket
        self.events = events
        self.buffer_size = buffer_size
        self.encoding = encoding
        self.conduit = None         # the accepted peer connection
        self.peer_address = None
        self.stopped_event = None   # set when the worker stops on its own
        self.close_errors = []      # errors the worker raised closing its sockets

    def startup(self):
        sock, address = self.server_socket.accept()
        self.conduit = SocketConduit(sock)
        self.peer_address = address
        logger.info("accepted connection from %s" % (address,))

    def loop(self):
        data = self.conduit.input.read(self.buffer_size)
        if not data:
            if self.running():
                logger.info("peer %s closed the connection" % (self.peer_address,))
                self.stopped_event = ServerStoppedEvent(ServerStoppedEvent.PEER_CLOSED)
                self.request_stop()
            return
        text = data.decode(self.encoding, errors='replace')
        logger.debug("Read data: [%s]" % text)
        self.events.fire(ChunkReceivedEvent(text, data))

    def exception_handler(self, e):
        if self.running():
            self.logger.exception(e)
            self.stopped_event = ServerStoppedEvent(ServerStoppedEvent.ERROR, e)
            self.request_stop()
        else:
            # closing the sockets to stop the worker fails the pending accept or read
            self.logger.debug("server worker stopped: %s" % e)

    def shutdown(self):
        self.close_errors = self._close_sockets()
        if self.stopped_event is not None:
            self.events.fire(self.stopped_event)

    def _close_sockets(self):
        errors = []
        conduit = self.conduit
        if conduit is not None:
            try:
                conduit.close()
            except CloseFailedError as e:
                errors.extend(e.errors)
        try:
            self.server_socket.close()
        except OSError as e:
            errors.append(e)
        for e in errors:
            logger.debug("error closing server endpoint: %s" % e)
        return errors

    def close(self, timeout=None):
        """
        Stops the worker: sets the stop event, then closes the listening socket and shuts down
        the accepted connection so that a blocked accept or read returns.
        :param timeout: the maximum time in seconds to wait for the worker to exit
        :return: a list of the errors raised closing the sockets, here or on the worker
        """
        self.request_stop()
        errors = []
        try:
            self.server_socket.close()
        except OSError as e:
            errors.append(e)
        conduit = self.conduit
        if conduit is not None:
            conduit.unblock()
        if self.stop(timeout):
            errors.extend(self.close_errors)
            self.close_errors = []
        else:
            logger.warning("server worker did not stop within %s seconds" % timeout)
            errors.extend(self._close_sockets())
        return errors
