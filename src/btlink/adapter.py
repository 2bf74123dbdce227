import logging

from btlink.connector.base import AdapterDisabledError, NoAdapterError
from btlink.platform.base import AdapterInfo, Platform

logger = logging.getLogger(__name__)


class AdapterGate:
    """
    Checks that the platform has a radio adapter and that it is enabled. The adapter is queried
    on every check, so a change in its state is seen by the next operation.
    """

    def __init__(self, platform: Platform):
        self.platform = platform

    def check(self) -> AdapterInfo:
        """
        :return: the adapter
        Raises NoAdapterError if there is no adapter, AdapterDisabledError if it is powered off.
        """
        adapter = self.platform.adapter()
        if adapter is None:
            logger.warning("no bluetooth adapter found")
            raise NoAdapterError()
        if not adapter.enabled:
            logger.warning("bluetooth adapter %s is disabled" % adapter.address)
            raise AdapterDisabledError("bluetooth adapter %s is disabled" % adapter.address)
        return adapter

    def usable(self) -> bool:
        adapter = self.platform.adapter()
        return adapter is not None and bool(adapter.enabled)
