"""Client wrappers for external services."""

from core.clients.fleet import FleetApiClient

__all__ = ["FleetApiClient"]
