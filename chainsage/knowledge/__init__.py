"""Endpoint catalogs for synchronous data providers."""

from chainsage.knowledge.endpoints import CatalogEndpoint, EndpointCatalog, load_catalog

__all__ = ["CatalogEndpoint", "EndpointCatalog", "load_catalog"]
