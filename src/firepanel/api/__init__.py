"""Fire Panel HTTP API"""

from .app import create_app
from .panel_api import (
    auth_router,
    lighting_router,
    panel_router,
    suppression_router,
    get_panel,
    set_panel,
)

__all__ = [
    'create_app',
    'auth_router',
    'lighting_router',
    'panel_router',
    'suppression_router',
    'get_panel',
    'set_panel',
]
