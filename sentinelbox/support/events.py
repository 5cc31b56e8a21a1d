class EventSource(object):
    """
    A list of handlers that are invoked with each event fired.
    Handlers are added and removed with += and -=, or add() and remove().
    """

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
        """ removes the handler. Removing a handler that was never added is ignored. """
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def fire(self, *args, **keywargs):
        for handler in list(self._handlers):
            handler(*args, **keywargs)

    def forward_to(self, other):
        """ fires every event from this source on another event source. """
        return self.add(other.fire)
