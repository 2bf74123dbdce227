from enum import Enum


class LinkMode(Enum):
    IDLE = 'idle'
    CLIENT = 'client'
    SERVER = 'server'


class ConnectionState:
    """
    The state owned by a single ConnectionManager. Only the manager's caller thread writes
    these fields; the server worker shares nothing but its stop event with it.
    """

    def __init__(self):
        self.adapter = None         # AdapterInfo seen by the last adapter check
        self.peer = None            # the selected Peer
        self.connector = None       # RfcommConnector holding the active link
        self.server = None          # ServerListener for the server endpoint

    @property
    def link(self):
        """ the conduit of the active client link, or None. """
        connector = self.connector
        return connector.conduit if connector is not None and connector.connected else None

    @property
    def mode(self) -> LinkMode:
        if self.server is not None:
            return LinkMode.SERVER
        if self.link is not None:
            return LinkMode.CLIENT
        return LinkMode.IDLE

    def reset(self):
        self.adapter = None
        self.peer = None
        self.connector = None
        self.server = None
