import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from configobj import ConfigObjError
from hamcrest import assert_that, is_, calling, raises, has_item

from btlink import settings


class SettingsTest(unittest.TestCase):

    def setUp(self):
        self.dir = tempfile.mkdtemp()
        self.user_file = os.path.join(self.dir, 'btlink.cfg')

    def tearDown(self):
        with patch.dict(os.environ, {'BTLINK_CONFIG': os.path.join(self.dir, 'missing.cfg')}):
            settings.reload()
        shutil.rmtree(self.dir)

    def write_user_config(self, text):
        with open(self.user_file, 'w') as f:
            f.write(text)

    def test_defaults(self):
        with patch.dict(os.environ, {'BTLINK_CONFIG': os.path.join(self.dir, 'missing.cfg')}):
            settings.reload()
        assert_that(settings.service_name, is_('btlink serial'))
        assert_that(settings.read_buffer_size, is_(100))
        assert_that(settings.encoding, is_('ascii'))
        assert_that(settings.stop_timeout, is_(5.0))

    def test_user_override(self):
        self.write_user_config("[btlink]\n[[settings]]\nread_buffer_size = 32\nservice_name = Robot\n")
        with patch.dict(os.environ, {'BTLINK_CONFIG': self.user_file}):
            applied = settings.reload()
        assert_that(applied, has_item('read_buffer_size'))
        assert_that(settings.read_buffer_size, is_(32))
        assert_that(settings.service_name, is_('Robot'))
        assert_that(settings.encoding, is_('ascii'))

    def test_invalid_override(self):
        self.write_user_config("[btlink]\n[[settings]]\nread_buffer_size = 0\n")
        with patch.dict(os.environ, {'BTLINK_CONFIG': self.user_file}):
            assert_that(calling(settings.reload), raises(ConfigObjError, "read_buffer_size"))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
