"""Route registration for the export server."""

from .export_routes import register_export_routes
from .health_routes import register_health_routes

__all__ = ["register_export_routes", "register_health_routes"]
