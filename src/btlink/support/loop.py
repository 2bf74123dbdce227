"""
Runs a unit of work repeatedly on a background thread until asked to stop.
"""
import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class AsyncLoop:
    """ Continually runs a given function on a background thread.
        Exceptions are logged and posted to the exception handler.
        The background thread is registered as a daemon.

        The stop event is the only state shared with the background thread.
    """

    def __init__(self, fn: Callable=None, args=(), name=None, log=logger):
        """
        :param fn the function to run
        :param args arguments to pass to fn
        :param name the name given to the background thread
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log

    def start(self):
        """
        Starts the background thread. Calling start while the thread is running does nothing.
        """
        if self.background_thread is None:
            self.stop_event.clear()
            t = threading.Thread(target=self._run, name=self.name, daemon=True)
            self.background_thread = t
            t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        """ The processing loop for the background thread.
             Invokes the callable for as long as the stop signal is not received.
        """
        if self._do(self.startup):
            while self.running():
                if not self._do(self.loop):
                    break
        self._do(self.shutdown)
        self.logger.info("background thread %s exiting" % self.name)

    def _do(self, callme):
        """ runs a function and captures any exceptions
        :return: True if the function completed without raising.
        """
        try:
            time.sleep(0)
            callme()
            return True
        except Exception as e:
            self.exception_handler(e)
            return False

    def startup(self):
        """ template method called when the thread starts"""
        pass

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ template method called when the thread exits """
        pass

    def running(self):
        return not self.stop_event.is_set()

    @property
    def alive(self) -> bool:
        thread = self.background_thread
        return thread is not None and thread.is_alive()

    def request_stop(self):
        """ signals the background thread to stop after the current iteration. """
        self.stop_event.set()

    def stop(self, timeout=None):
        """
        Signals the background thread to stop and waits for it to finish.
        :param timeout: the maximum time in seconds to wait for the thread.
        :return: True if the thread has finished (or was never started.)
        """
        self.request_stop()
        thread = self.background_thread
        self.background_thread = None
        if thread and thread is not threading.current_thread():
            thread.join(timeout)
            return not thread.is_alive()
        return True
