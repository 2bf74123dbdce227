"""
The single-letter commands understood by the robot firmware. The letters follow the French
words for the movements.
"""
from enum import Enum


class Command(Enum):
    FORWARD = 'a'       # avancer
    BACKWARD = 'r'      # reculer
    LEFT = 'g'          # gauche
    RIGHT = 'd'         # droite
    STOP = 's'

    @property
    def payload(self) -> bytes:
        """
        >>> Command.STOP.payload
        b's'
        """
        return self.value.encode('ascii')

    @classmethod
    def parse(cls, value):
        """
        Converts a member, a command letter or a member name to a Command.
        >>> Command.parse('a')
        <Command.FORWARD: 'a'>
        >>> Command.parse('left')
        <Command.LEFT: 'g'>
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError("unknown command %r" % (value,))
