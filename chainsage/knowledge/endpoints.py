"""
Endpoint Catalog

Describes the REST endpoints a synchronous provider exposes so the query
generator can pick one and the executor can check the pick.

Usage:
    from chainsage.knowledge.endpoints import load_catalog

    catalog = load_catalog("mobula")
    entry = catalog.get("/1/market/data")
"""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).resolve().parent / "catalogs"


class CatalogEndpoint(BaseModel):
    """One endpoint description."""

    endpoint_group: str
    name: str
    path: str
    description: str = ""
    required_parameters: list[str] = Field(default_factory=list)
    optional_parameters: list[str] = Field(default_factory=list)


class EndpointCatalog(BaseModel):
    """All endpoints of one provider."""

    provider: str
    endpoints: list[CatalogEndpoint]

    def get(self, path: str) -> CatalogEndpoint | None:
        for endpoint in self.endpoints:
            if endpoint.path == path:
                return endpoint
        return None

    def for_prompt(self) -> list[dict]:
        """Plain dicts in the shape shown to the model."""
        return [
            endpoint.model_dump(include={"endpoint_group", "name", "path", "description",
                                         "required_parameters"})
            for endpoint in self.endpoints
        ]


def load_catalog_file(path: Path) -> EndpointCatalog:
    with path.open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    catalog = EndpointCatalog.model_validate(data)
    logger.debug(
        f"Loaded {len(catalog.endpoints)} endpoints for {catalog.provider}",
        extra={"path": str(path)},
    )
    return catalog


@lru_cache(maxsize=8)
def load_catalog(provider: str) -> EndpointCatalog:
    """Load a packaged catalog by provider name."""
    path = CATALOG_DIR / f"{provider}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"No endpoint catalog for provider '{provider}' at {path}")
    return load_catalog_file(path)
