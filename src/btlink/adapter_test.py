import unittest
from unittest.mock import patch

from hamcrest import assert_that, is_, calling, raises

from btlink.adapter import AdapterGate
from btlink.connector.base import AdapterDisabledError, NoAdapterError
from btlink.platform.loopback import LoopbackPlatform


class AdapterGateTest(unittest.TestCase):

    def setUp(self):
        self.platform = LoopbackPlatform()
        self.sut = AdapterGate(self.platform)

    def test_enabled_adapter(self):
        assert_that(self.sut.check(), is_(self.platform.adapter_info))
        assert_that(self.sut.usable(), is_(True))

    def test_no_adapter(self):
        self.platform.adapter_info = None
        assert_that(calling(self.sut.check), raises(NoAdapterError))
        assert_that(self.sut.usable(), is_(False))

    def test_disabled_adapter(self):
        self.platform.adapter_info.enabled = False
        with patch('btlink.adapter.logger') as logger:
            assert_that(calling(self.sut.check), raises(AdapterDisabledError, "disabled"))
            logger.warning.assert_called_once()
        assert_that(self.sut.usable(), is_(False))

    def test_state_is_read_on_each_check(self):
        self.platform.adapter_info.enabled = False
        assert_that(self.sut.usable(), is_(False))
        self.platform.adapter_info.enabled = True
        assert_that(self.sut.usable(), is_(True))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
