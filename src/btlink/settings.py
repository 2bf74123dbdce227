"""
Tunables for the connection manager. The values below are overwritten at import from the
[btlink] [[settings]] section of the btlink*.cfg files (see btlink.config.config.load_config).
"""
import sys

from btlink.config.config import configure_module

# the SDP service name advertised by the server endpoint
service_name = 'btlink serial'

# the maximum number of bytes read from the peer in one read
read_buffer_size = 100

# the text encoding of received chunks and of str payloads
encoding = 'ascii'

# seconds to wait for the server worker to finish on close
stop_timeout = 5.0


def reload():
    """ re-applies the configuration files to this module. """
    return configure_module(sys.modules[__name__], 'btlink')


reload()
