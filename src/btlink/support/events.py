from queue import Queue, Empty


class EventSource(object):

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, event):
        self._fire(event)

    def fire_all(self, events):
        self._fire_all(events)

    def _fire_all(self, events):
        for e in events:
            self._fire(e)

    def _fire(self, event):
        for handler in self.handlers():
            handler(event)


class QueuedEventSource(EventSource):
    """
    the public fire() methods post events to the queue. These are fired when a thread
    calls publish(). Any thread may post, handlers only run on the publishing thread.
    """
    def __init__(self):
        super().__init__()
        self.event_queue = Queue()

    def fire(self, event):
        self.event_queue.put(event)

    def fire_all(self, events):
        for e in events:
            self.event_queue.put(e)

    def clear(self):
        """ discards the queued events without publishing them.
        :return: the number of events discarded.
        """
        count = 0
        queue = self.event_queue
        while not queue.empty():
            queue.get()
            count += 1
        return count

    def publish(self, block=False, timeout=None):
        """ publishes any queued events on the calling thread.
        :param block: when True, waits for at least one event to arrive.
        :param timeout: the maximum time to wait in seconds when blocking.
        :return: the number of events published.
        """
        queue = self.event_queue
        events = []
        if block:
            try:
                events.append(queue.get(timeout=timeout))
            except Empty:
                return 0
        while not queue.empty():
            events.append(queue.get())
        self._fire_all(events)
        return len(events)
