import unittest

from hamcrest import assert_that, is_, equal_to, is_not

from btlink.support.mixins import CommonEqualityMixin


class Value(CommonEqualityMixin):
    def __init__(self, a, b=None):
        self.a = a
        self.b = b


class Other(CommonEqualityMixin):
    def __init__(self, a, b=None):
        self.a = a
        self.b = b


class CommonEqualityMixinTest(unittest.TestCase):

    def test_equal_values(self):
        assert_that(Value(1, 2), is_(equal_to(Value(1, 2))))
        assert_that(Value(1, 2) != Value(1, 2), is_(False))

    def test_different_values(self):
        assert_that(Value(1, 2), is_not(equal_to(Value(1, 3))))

    def test_different_types(self):
        assert_that(Value(1), is_not(equal_to(Other(1))))
        assert_that(Value(1), is_not(equal_to(1)))

    def test_equal_values_hash_equal(self):
        assert_that(hash(Value('x', [1])), is_(hash(Value('x', [1]))))
        assert_that(len({Value(1), Value(1), Value(2)}), is_(2))

    def test_repr(self):
        assert_that(repr(Value(1, 'b')), is_("Value(a=1, b='b')"))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
