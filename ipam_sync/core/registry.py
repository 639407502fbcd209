"""Source Registry - maps connection kinds to source adapters and
sync targets to entity reconcilers.

Adding a new data source means registering one adapter class here; the
sync service never branches on connection_type itself.
"""
from typing import Type, Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Central registry for adapter and reconciler types.

    Supports:
    - Source adapters (REST, public Google Sheet, OAuth Google Sheet)
    - Entity reconcilers (devices, libraries, contacts)

    Usage:
        # Register an adapter
        registry.register("source", "rest", RestSource)

        # Get adapter instance
        source = registry.get("source", "rest", config_dict)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._providers: Dict[str, Dict[str, Type]] = {
                "source": {},
                "entity": {},
            }
            cls._instance._initialized = False
        return cls._instance

    def register(self, category: str, name: str, provider_class: Type):
        """Register a class under category/name."""
        if category not in self._providers:
            self._providers[category] = {}

        self._providers[category][name] = provider_class
        logger.debug(f"Registered {category} provider: {name}")

    def get_class(self, category: str, name: str) -> Type:
        """Look up a registered class."""
        if category not in self._providers:
            raise ValueError(f"Unknown category: {category}")

        if name not in self._providers[category]:
            raise ValueError(f"Unknown {category} provider: {name}")

        return self._providers[category][name]

    def get(self, category: str, name: str, config: Optional[dict] = None) -> Any:
        """Get a provider instance."""
        provider_class = self.get_class(category, name)

        if config is not None:
            return provider_class(config)
        return provider_class()

    def has_provider(self, category: str, name: str) -> bool:
        """Check if a provider is registered."""
        return name in self._providers.get(category, {})

    def initialize_defaults(self):
        """Register all built-in adapters and reconcilers."""
        if self._initialized:
            return

        # Source adapters
        from ipam_sync.sources.rest import RestSource
        from ipam_sync.sources.sheets import PublicSheetSource, OAuthSheetSource

        self.register("source", "rest", RestSource)
        self.register("source", "REST API", RestSource)  # Legacy label
        self.register("source", "google_sheets:public", PublicSheetSource)
        self.register("source", "google_sheets:oauth", OAuthSheetSource)

        # Entity reconcilers
        from ipam_sync.sync.reconciler import (
            DeviceReconciler, LibraryReconciler, ContactReconciler
        )

        self.register("entity", "devices", DeviceReconciler)
        self.register("entity", "libraries", LibraryReconciler)
        self.register("entity", "contacts", ContactReconciler)

        self._initialized = True
        logger.info("Source registry initialized with defaults")


# Singleton instance
registry = SourceRegistry()


def get_source(source_kind: str, config: dict):
    """Get a source adapter by kind."""
    registry.initialize_defaults()
    return registry.get("source", source_kind, config)


def get_reconciler_class(entity_type: str):
    """Get the reconciler class for a sync target."""
    registry.initialize_defaults()
    return registry.get_class("entity", entity_type)
