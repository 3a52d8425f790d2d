"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.resale.driving_adapter.http_controller import (
    earning_controller,
    listing_controller,
    order_controller,
    webhook_controller,
)


WIRE_MODULES: list[ModuleType] = [
    listing_controller,
    order_controller,
    earning_controller,
    webhook_controller,
]
