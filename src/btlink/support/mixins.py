import threading


class CommonEqualityMixin(object):
    """  a deep equals comparison for value objects. """
    local = threading.local()

    def __eq__(self, other):
        if not hasattr(CommonEqualityMixin.local, 'seen'):
            CommonEqualityMixin.local.seen = []
        seen = CommonEqualityMixin.local.seen
        return hasattr(other, '__dict__') and isinstance(other, self.__class__) \
            and self._dicts_equal(other, seen)

    def _dicts_equal(self, other, seen):
        p = (id(self), id(other))
        if p in seen:
            raise ValueError("recursive call %s" % str(p))

        d1 = self.__dict__
        d2 = other.__dict__
        try:
            seen.append(p)
            result = d1 == d2
        finally:
            seen.pop()
        return result

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(tuple(sorted((k, repr(v)) for k, v in self.__dict__.items())))

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__,
                           ", ".join("%s=%r" % (k, v) for k, v in sorted(self.__dict__.items())))
