"""
ORM models for orders, gauges and persisted packet state.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .orders import Order  # noqa: F401
from .gauges import Gauge  # noqa: F401
from .packets import PacketDocument  # noqa: F401
