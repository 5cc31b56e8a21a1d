import threading


hidden_value = '***'


def quote(val):
    return "'" + str(val) + "'" if val is not None else "None"


class StringerMixin:
    """
    Describes an object as its class name followed by its attributes in key sorted order.
    Attributes named in _stringer_hidden are shown masked when they have a value,
    so credentials can be logged safely.
    """
    _stringer_hidden = ()

    def __str__(self):
        return self.__class__.__name__ + self._sorted_items_string()

    def _sorted_items_string(self):
        return "{" + ", ".join(["'" + str(key) + "': " + self._display_value(key, val)
                                for key, val in sorted(self.__dict__.items())
                                if not key.startswith('_')]) + "}"

    def _display_value(self, key, val):
        if key in self._stringer_hidden and val is not None:
            return quote(hidden_value)
        return quote(val)


class CommonEqualityMixin(object):
    """  a deep equals comparison for value objects, based on the public attributes. """
    local = threading.local()

    def __eq__(self, other):
        if not hasattr(CommonEqualityMixin.local, 'seen'):
            CommonEqualityMixin.local.seen = []
        seen = CommonEqualityMixin.local.seen
        return hasattr(other, '__dict__') and isinstance(other, self.__class__) \
            and self._dicts_equal(other, seen)

    def _value_items(self):
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    def _dicts_equal(self, other, seen):
        p = (id(self), id(other))
        if p in seen:
            raise ValueError("recursive comparison of %s" % type(self).__name__)
        try:
            seen.append(p)
            result = self._value_items() == other._value_items()
        finally:
            seen.pop()
        return result

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None
