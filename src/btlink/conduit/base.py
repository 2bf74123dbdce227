from abc import abstractmethod
from io import IOBase


class Conduit:
    """
    A conduit allows two-way communication. It provides an file-like input endpoint and a file-like output endpoint.
    """

    @property
    @abstractmethod
    def target(self):
        """ the underlying resource, such as the socket. """
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ fetches the I/O stream that provides input.
            Callers can use the usual readXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ fetches the I/O stream that provides output.
            Callers can use the usual writeXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both the input and output streams.
        """
        raise NotImplementedError
