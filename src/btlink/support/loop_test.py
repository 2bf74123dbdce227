import threading
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, not_none, none

from btlink.support.loop import AsyncLoop


class AsyncLoopTest(unittest.TestCase):

    def test_constructor(self):
        fn = Mock()
        sut = AsyncLoop(fn, (1, 2), name='worker')
        assert_that(sut.fn, is_(fn))
        assert_that(sut.args, is_((1, 2)))
        assert_that(sut.background_thread, is_(none()))
        assert_that(sut.running(), is_(True))
        assert_that(sut.alive, is_(False))

    def test_loop_calls_fn(self):
        fn = Mock()
        sut = AsyncLoop(fn, ("a",))
        sut.loop()
        fn.assert_called_once_with("a")

    def test_runs_until_stopped(self):
        called = threading.Event()
        sut = AsyncLoop(called.set)
        sut.start()
        assert_that(sut.background_thread, is_(not_none()))
        assert_that(called.wait(5), is_(True))
        assert_that(sut.stop(5), is_(True))
        assert_that(sut.background_thread, is_(none()))

    def test_start_twice_uses_one_thread(self):
        sut = AsyncLoop(Mock())
        sut.start()
        thread = sut.background_thread
        sut.start()
        assert_that(sut.background_thread, is_(thread))
        sut.stop(5)

    def test_stop_not_started(self):
        sut = AsyncLoop(Mock())
        assert_that(sut.stop(), is_(True))
        assert_that(sut.running(), is_(False))

    def test_exception_ends_loop(self):
        error = ValueError("boom")
        sut = AsyncLoop(Mock(side_effect=error), log=Mock())
        sut.shutdown = Mock()
        sut._run()
        sut.logger.exception.assert_called_once_with(error)
        sut.shutdown.assert_called_once_with()

    def test_failed_startup_skips_loop(self):
        fn = Mock()
        sut = AsyncLoop(fn, log=Mock())
        sut.startup = Mock(side_effect=OSError("no"))
        sut._run()
        fn.assert_not_called()

    def test_request_stop_from_loop(self):
        sut = AsyncLoop(log=Mock())
        sut.fn = sut.request_stop
        sut._run()
        assert_that(sut.running(), is_(False))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
