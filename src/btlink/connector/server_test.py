import sys
import time
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_, empty, equal_to, instance_of, contains_exactly

from btlink.connector.base import CloseFailedError
from btlink.connector.server import ChunkReceivedEvent, ServerListener, ServerStoppedEvent
from btlink.platform.base import SERIAL_PORT_PROFILE_UUID
from btlink.platform.loopback import LoopbackServerSocket
from btlink.support.events import QueuedEventSource


def debug_timeout(value):
    """
    Replaces the timeout value with a very large one if the tests are running under a debugger,
    so a breakpoint does not fail the test.
    """
    return value if sys.gettrace() is None else 100000


class Collector:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def chunks(self):
        return [e.text for e in self.events if isinstance(e, ChunkReceivedEvent)]

    def stopped(self):
        return [e for e in self.events if isinstance(e, ServerStoppedEvent)]


class ServerListenerTest(unittest.TestCase):

    def setUp(self):
        self.server_socket = LoopbackServerSocket('test', SERIAL_PORT_PROFILE_UUID)
        self.events = QueuedEventSource()
        self.collector = Collector()
        self.events += self.collector
        self.sut = ServerListener(self.server_socket, self.events, buffer_size=100)
        self.remote = None

    def tearDown(self):
        self.sut.close(2)
        if self.remote is not None:
            self.remote.close()

    def connect(self):
        self.sut.start()
        self.remote = self.server_socket.dial('11:22:33:44:55:66')

    def wait_for_peer(self):
        while self.sut.conduit is None:
            time.sleep(0.01)

    def publish_until(self, predicate):
        while not predicate():
            self.events.publish(block=True, timeout=1)

    @timeout_decorator.timeout(debug_timeout(5))
    def test_chunk_received(self):
        self.connect()
        self.remote.sendall(b"hello")
        self.publish_until(lambda: self.collector.events)
        assert_that(self.collector.events, contains_exactly(ChunkReceivedEvent("hello", b"hello")))
        assert_that(self.sut.peer_address, is_('11:22:33:44:55:66'))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_chunks_are_received_in_order(self):
        self.connect()
        for chunk in (b"a", b"b", b"c"):
            self.remote.sendall(chunk)
        self.publish_until(lambda: len("".join(self.collector.chunks())) == 3)
        assert_that("".join(self.collector.chunks()), is_("abc"))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_reads_at_most_buffer_size(self):
        self.sut.buffer_size = 4
        self.connect()
        self.remote.sendall(b"0123456789")
        self.publish_until(lambda: len("".join(self.collector.chunks())) == 10)
        assert_that(all(len(c) <= 4 for c in self.collector.chunks()), is_(True))
        assert_that("".join(self.collector.chunks()), is_("0123456789"))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_undecodable_bytes_are_replaced(self):
        self.connect()
        self.remote.sendall(b"a\xffb")
        self.publish_until(lambda: self.collector.events)
        assert_that(self.collector.chunks(), is_(["a\ufffdb"]))
        assert_that(self.collector.events[0].data, is_(b"a\xffb"))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_peer_closed(self):
        self.connect()
        self.remote.close()
        self.remote = None
        self.publish_until(lambda: self.collector.stopped())
        assert_that(self.collector.stopped(), contains_exactly(ServerStoppedEvent(ServerStoppedEvent.PEER_CLOSED)))
        self.sut.background_thread.join(2)
        assert_that(self.sut.alive, is_(False))
        assert_that(self.server_socket.closed, is_(True))
        assert_that(self.sut.conduit.open, is_(False))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_read_error(self):
        self.connect()
        self.wait_for_peer()
        error = OSError("connection reset")
        self.sut.conduit.input.read = Mock(side_effect=error)
        self.remote.sendall(b"x")
        self.publish_until(lambda: self.collector.stopped())
        assert_that(self.collector.stopped(), contains_exactly(ServerStoppedEvent(ServerStoppedEvent.ERROR, error)))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_close_while_accepting(self):
        self.sut.start()
        assert_that(self.sut.close(2), is_(empty()))
        assert_that(self.sut.alive, is_(False))
        assert_that(self.server_socket.closed, is_(True))
        self.events.publish()
        assert_that(self.collector.events, is_(empty()))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_close_while_reading(self):
        self.connect()
        self.remote.sendall(b"x")
        self.publish_until(lambda: self.collector.events)
        assert_that(self.sut.close(2), is_(empty()))
        assert_that(self.sut.alive, is_(False))
        assert_that(self.sut.conduit.open, is_(False))
        self.events.publish()
        assert_that(self.collector.chunks(), is_(["x"]))
        assert_that(self.collector.stopped(), is_(empty()))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_worker_close_error_is_returned(self):
        self.connect()
        self.wait_for_peer()
        conduit = self.sut.conduit
        error = OSError("peer socket broken")
        conduit.close = Mock(side_effect=CloseFailedError([error]))
        assert_that(self.sut.close(2), is_(equal_to([error])))
        assert_that(self.sut.close(2), is_(empty()))
        del conduit.close
        conduit.close()

    def test_close_not_started(self):
        assert_that(self.sut.close(1), is_(empty()))
        assert_that(self.server_socket.closed, is_(True))

    def test_close_reports_socket_error(self):
        error = OSError("bad descriptor")
        server_socket = Mock()
        server_socket.close.side_effect = error
        sut = ServerListener(server_socket, Mock())
        assert_that(sut.close(1), is_(equal_to([error])))

    def test_worker_thread_name(self):
        assert_that(self.sut.name, is_('btlink-server'))
        assert_that(self.sut.events, is_(instance_of(QueuedEventSource)))


class ServerEventsTest(unittest.TestCase):

    def test_chunk_equality(self):
        assert_that(ChunkReceivedEvent("a", b"a"), is_(equal_to(ChunkReceivedEvent("a", b"a"))))

    def test_stopped_repr(self):
        assert_that(repr(ServerStoppedEvent(ServerStoppedEvent.PEER_CLOSED)),
                    is_("ServerStoppedEvent(error=None, reason='peer closed')"))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
