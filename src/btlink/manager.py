"""
The connection manager: one logical serial link over Bluetooth RFCOMM, either as a client
connected to a paired peer or as a server waiting for a single peer.

Client path: AdapterGate -> PeerSelector -> RfcommConnector, then send_data() and close().
Server path: AdapterGate -> ServerListener, then close().

Received data and server notifications are queued on the manager's events and delivered when
the caller calls publish(), on the caller's thread.
"""
import logging
import weakref

from btlink import settings
from btlink.adapter import AdapterGate
from btlink.commands import Command
from btlink.connector.base import CloseFailedError, InvalidStateError, NoPeerFoundError, SendFailedError, \
    ServerBindFailedError
from btlink.connector.rfcomm import RfcommConnector
from btlink.connector.server import ChunkReceivedEvent, ServerListener, ServerStoppedEvent
from btlink.discovery import PeerSelector
from btlink.platform.base import SERIAL_PORT_PROFILE_UUID, Platform
from btlink.state import ConnectionState, LinkMode
from btlink.support.events import QueuedEventSource

logger = logging.getLogger(__name__)


def tobytes(arg, encoding='ascii'):
    """
    Converts a string to bytes
    >>> tobytes("abc")
    b'abc'
    >>> tobytes(b"abc")
    b'abc'
    >>> tobytes(bytearray(b"abc"))
    b'abc'
    """
    if isinstance(arg, str):
        arg = arg.encode(encoding)
    return bytes(arg)


class ServerSubscription:
    """ Routes server events published on the caller's thread to the caller's callbacks. """

    def __init__(self, on_chunk, on_stopped=None):
        self.on_chunk = on_chunk
        self.on_stopped = on_stopped

    def __call__(self, event):
        if isinstance(event, ChunkReceivedEvent):
            self.on_chunk(event.text)
        elif isinstance(event, ServerStoppedEvent) and self.on_stopped is not None:
            self.on_stopped(event)


class ConnectionManager:
    """
    Manages a single Bluetooth serial link. A platform may be used by only one live manager.

    The manager does no locking: connect, send and close must be called from one thread
    at a time.

    :param platform: supplies the adapter, the paired peers and the sockets
    :param uuid: the service the link rendezvous on
    """

    _claims = weakref.WeakKeyDictionary()    # platform to a weak reference to its manager

    def __init__(self, platform: Platform, uuid=SERIAL_PORT_PROFILE_UUID):
        claim = self._claims.get(platform)
        owner = claim() if claim is not None else None
        if owner is not None:
            raise InvalidStateError("the platform is already used by another connection manager")
        self._claims[platform] = weakref.ref(self)
        self.platform = platform
        self.uuid = uuid
        self.state = ConnectionState()
        self.gate = AdapterGate(platform)
        self.selector = PeerSelector(platform, self.gate)
        self.events = QueuedEventSource()
        self._subscriptions = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    @property
    def mode(self) -> LinkMode:
        return self.state.mode

    @property
    def peer(self):
        return self.state.peer

    @property
    def link(self):
        return self.state.link

    def _check_idle(self, operation):
        mode = self.mode
        if mode is not LinkMode.IDLE:
            raise InvalidStateError("cannot %s while in %s mode, close first" % (operation, mode.value))

    def check_adapter(self):
        """
        :return: the adapter. Raises NoAdapterError or AdapterDisabledError.
        """
        adapter = self.state.adapter = self.gate.check()
        return adapter

    def select_peer(self, name=None):
        """
        Selects the paired peer with the given name, or the first one when no name is given.
        Raises the adapter errors or NoPeerFoundError.
        """
        peer = self.selector.select(name)
        self.state.peer = peer
        return peer

    def open_socket(self):
        """
        Opens the link to the selected peer. Blocks until the transport has connected.
        :return: the conduit of the link
        Raises NoPeerFoundError if no peer is selected, ConnectFailedError if the transport fails.
        """
        peer = self.state.peer
        if peer is None:
            raise NoPeerFoundError("no bluetooth device selected")
        connector = RfcommConnector(self.platform, peer, self.uuid)
        connector.events.add(self.events.fire)
        connector.connect()
        self.state.connector = connector
        return connector.conduit

    def connect_to_peer(self, name=None):
        """
        Checks the adapter, selects the peer and opens the link, stopping at the first failure.
        :param name: the exact name of the paired peer, or None for the first paired peer.
        """
        self._check_idle("connect")
        self.check_adapter()
        self.select_peer(name)
        self.open_socket()

    def send_data(self, payload):
        """
        Writes the payload to the link. str payloads are encoded with settings.encoding.
        There is no framing or acknowledgement. A write error closes the link.
        Raises SendFailedError.
        """
        data = tobytes(payload, settings.encoding)
        link = self.state.link
        if link is None or not self.gate.usable() or self.state.peer is None:
            raise SendFailedError("Data sending failed: no active link, usable adapter or selected device")
        try:
            link.output.write(data)
            link.output.flush()
        except OSError as e:
            logger.warning("error sending data to %s: %s" % (self.state.peer.key(), e))
            self._drop_link()
            raise SendFailedError("Data sending failed: %s" % e) from e
        logger.debug("sent %r to %s" % (data, self.state.peer.key()))

    def send_command(self, command):
        """ sends one robot command, given as a Command, its letter or its name. """
        self.send_data(Command.parse(command).payload)

    def _drop_link(self):
        connector = self.state.connector
        self.state.connector = None
        try:
            connector.disconnect()
        except CloseFailedError as e:
            logger.debug("errors closing failed link: %s" % e)

    def create_server(self, on_chunk, on_stopped=None) -> ServerListener:
        """
        Listens for one peer under the serial port profile and reads from it in the background.
        :param on_chunk: called with the decoded text of each chunk read, during publish()
        :param on_stopped: called with a ServerStoppedEvent, during publish(), when the peer
            closes the connection or reading fails.
        Raises the adapter errors, InvalidStateError or ServerBindFailedError.
        """
        self._check_idle("create a server")
        self.check_adapter()
        try:
            server_socket = self.platform.listen(settings.service_name, self.uuid)
        except OSError as e:
            logger.warning("unable to create server '%s': %s" % (settings.service_name, e))
            raise ServerBindFailedError("unable to create server '%s': %s" % (settings.service_name, e)) from e
        subscription = ServerSubscription(on_chunk, on_stopped)
        self.events.add(subscription)
        self._subscriptions.append(subscription)
        listener = ServerListener(server_socket, self.events, settings.read_buffer_size, settings.encoding)
        self.state.server = listener
        listener.start()
        logger.info("server '%s' listening for service %s" % (settings.service_name, self.uuid))
        return listener

    def publish(self, block=False, timeout=None):
        """
        Delivers the queued events to the callbacks on the calling thread.
        :return: the number of events delivered
        """
        return self.events.publish(block, timeout)

    def close(self):
        """
        Stops the server and closes the link. Every resource is closed even if closing
        another fails. Events not yet published are discarded, so no callback runs after close.
        Closing an idle manager does nothing.
        Raises CloseFailedError after everything was closed if any close failed.
        """
        errors = []
        server = self.state.server
        if server is not None:
            errors.extend(server.close(settings.stop_timeout))
        connector = self.state.connector
        if connector is not None:
            try:
                connector.disconnect()
            except CloseFailedError as e:
                errors.extend(e.errors)
        discarded = self.events.clear()
        if discarded:
            logger.debug("discarded %d undelivered events on close" % discarded)
        for subscription in self._subscriptions:
            self.events.remove(subscription)
        self._subscriptions = []
        self.state.reset()
        if errors:
            logger.warning("Closing bluetooth connection failed: %s" % errors)
            raise CloseFailedError(errors)

    def release(self):
        """ closes the manager and frees the platform for another manager. """
        try:
            self.close()
        finally:
            claim = self._claims.get(self.platform)
            if claim is not None and claim() is self:
                del self._claims[self.platform]
