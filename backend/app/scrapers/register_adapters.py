"""Register all retailer adapters with a factory.

Called once at startup by the API and the indexer script.
"""

import structlog

from app.core.enums import RetailerName
from app.scrapers.adapters import CalgaryShootingCentreAdapter, ProphetRiverAdapter
from app.scrapers.factory import AdapterFactory

logger = structlog.get_logger(__name__)


def register_all_adapters(factory: AdapterFactory) -> None:
    """Register all available adapters with the factory."""
    adapters = [
        (RetailerName.CALGARY_SHOOTING_CENTRE, CalgaryShootingCentreAdapter),
        (RetailerName.PROPHET_RIVER, ProphetRiverAdapter),
    ]

    for retailer, adapter_class in adapters:
        factory.register_adapter(retailer, adapter_class)

    logger.info(
        "adapters_registered",
        count=len(adapters),
        retailers=[retailer.value for retailer, _ in adapters],
    )
