"""Factory for creating and managing retailer adapter instances."""

from typing import Dict, Iterable, List, Optional, Type

import structlog

from app.config import settings
from app.core.enums import RetailerName
from app.scrapers.base import BaseAdapter
from app.scrapers.transport import HttpTransport

logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Registry of adapter classes keyed by retailer.

    Injects the shared transport and the crawl cooldown into every
    adapter it creates.
    """

    def __init__(
        self,
        transport: Optional[HttpTransport] = None,
        cooldown_seconds: Optional[float] = None,
    ):
        """Initialize the adapter factory.

        Args:
            transport: Transport handed to every adapter
            cooldown_seconds: Delay between requests to one retailer
        """
        self.transport = transport
        self.cooldown_seconds = (
            cooldown_seconds if cooldown_seconds is not None else settings.CRAWL_COOLDOWN_SECONDS
        )
        self._adapter_registry: Dict[RetailerName, Type[BaseAdapter]] = {}

    def register_adapter(self, retailer: RetailerName, adapter_class: Type[BaseAdapter]) -> None:
        """Register an adapter class for a retailer.

        Args:
            retailer: Retailer identifier
            adapter_class: Adapter class (must inherit from BaseAdapter)
        """
        if not issubclass(adapter_class, BaseAdapter):
            raise ValueError(f"Adapter class must inherit from BaseAdapter: {adapter_class}")

        self._adapter_registry[retailer] = adapter_class
        logger.debug(
            "adapter_registered",
            retailer=retailer.value,
            pagination=adapter_class.pagination,
        )

    def create_adapter(self, retailer: RetailerName) -> Optional[BaseAdapter]:
        """Create and configure an adapter instance.

        Args:
            retailer: Retailer identifier

        Returns:
            Configured adapter instance, or None if not registered
        """
        adapter_class = self._adapter_registry.get(retailer)
        if not adapter_class:
            logger.warning("adapter_not_found", retailer=retailer.value)
            return None

        adapter = adapter_class()
        adapter.transport = self.transport
        adapter.cooldown_seconds = self.cooldown_seconds
        return adapter

    def select_retailers(
        self,
        included: Optional[Iterable[RetailerName]] = None,
        excluded: Optional[Iterable[RetailerName]] = None,
    ) -> List[RetailerName]:
        """Registered retailers after include/exclude filtering.

        Args:
            included: Only these retailers (all registered when empty)
            excluded: Never these retailers

        Returns:
            Retailers in registration order
        """
        included_set = set(included or [])
        excluded_set = set(excluded or [])

        for retailer in included_set - set(self._adapter_registry):
            logger.warning("adapter_not_found", retailer=retailer.value)

        return [
            retailer
            for retailer in self._adapter_registry
            if (not included_set or retailer in included_set) and retailer not in excluded_set
        ]

    def create_adapters(
        self,
        included: Optional[Iterable[RetailerName]] = None,
        excluded: Optional[Iterable[RetailerName]] = None,
    ) -> List[BaseAdapter]:
        return [self.create_adapter(retailer) for retailer in self.select_retailers(included, excluded)]

    def get_registered_retailers(self) -> List[RetailerName]:
        return list(self._adapter_registry.keys())

    def has_adapter(self, retailer: RetailerName) -> bool:
        return retailer in self._adapter_registry
