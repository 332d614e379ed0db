"""Retailer-specific adapter implementations.

Each adapter module implements a class that inherits from
BasePaginatedAdapter (page-bounded listings) or BaseCursorAdapter
(continuation-token APIs).
"""

from .calgary_shooting_centre import CalgaryShootingCentreAdapter
from .prophet_river import ProphetRiverAdapter

__all__ = [
    # Page-bounded adapters
    "CalgaryShootingCentreAdapter",
    # Cursor adapters
    "ProphetRiverAdapter",
]
