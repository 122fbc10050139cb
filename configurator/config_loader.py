"""Configuration Loader for store settings.

Each store lives in its own directory under tenants/:

    tenants/<store_id>/config.yaml   store metadata, money format, compatibility
                                     default and shared variation categories
    tenants/<store_id>/catalog.yaml  products for the in-memory catalog

Files are validated with pydantic and cached per store.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from configurator.catalog import InMemoryCatalog
from configurator.models import VariationCategory

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS FOR CONFIGURATION VALIDATION
# =============================================================================

class MoneyFormat(BaseModel):
    """How amounts are rendered for display."""
    currency_code: str = "BRL"
    symbol: str = "R$"
    symbol_separator: str = " "
    decimal_places: int = Field(2, ge=0)
    decimal_separator: str = ","
    thousands_separator: str = "."


class CompatibilityConfig(BaseModel):
    """Semantics of the color/size compatibility matrix."""
    # True: missing (color, size) rows mean "available" (open world).
    # False: the matrix is an allow-list and missing rows mean "unavailable".
    default_available: bool = True


@dataclass
class StoreConfig:
    """Complete store configuration container."""

    # Store metadata
    store_id: str = ""
    store_name: str = ""
    description: str = ""
    version: str = "1.0"

    money: MoneyFormat = field(default_factory=MoneyFormat)
    compatibility: CompatibilityConfig = field(default_factory=CompatibilityConfig)

    # Store-scoped categories shared by every product of the store
    shared_categories: list[VariationCategory] = field(default_factory=list)

    def get_shared_category(self, category_id: str) -> Optional[VariationCategory]:
        for category in self.shared_categories:
            if category.id == category_id:
                return category
        return None


# =============================================================================
# STORE RESOLUTION
# =============================================================================

DEFAULT_STORE = os.environ.get("STORE_ID", "demo_store")

_PACKAGE_DIR = Path(__file__).parent
_TENANTS_DIR = _PACKAGE_DIR / "tenants"


def _resolve_config_path(store_id: str) -> Path:
    return _TENANTS_DIR / store_id / "config.yaml"


def get_available_stores() -> list[dict]:
    """List the stores found under tenants/."""
    stores = []
    if not _TENANTS_DIR.exists():
        return stores

    for tenant_dir in sorted(_TENANTS_DIR.iterdir()):
        config_path = tenant_dir / "config.yaml"
        if tenant_dir.is_dir() and config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
            store_meta = raw.get("store", {})
            stores.append({
                "id": tenant_dir.name,
                "name": store_meta.get("name", tenant_dir.name),
                "description": store_meta.get("description", ""),
                "version": store_meta.get("version", "1.0"),
                "config_file": str(config_path),
            })
    return stores


def load_store_config(config_path: Optional[str] = None, store_id: Optional[str] = None) -> StoreConfig:
    """Load and validate store configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, uses store_id to find it.
        store_id: Store identifier. If None, uses DEFAULT_STORE.

    Returns:
        Validated StoreConfig object
    """
    if config_path is None:
        if store_id is None:
            store_id = DEFAULT_STORE
        config_path = _resolve_config_path(store_id)

    with open(config_path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    config = StoreConfig()

    store = raw.get("store", {})
    config.store_id = store.get("id", store_id or "")
    config.store_name = store.get("name", "")
    config.description = store.get("description", "")
    config.version = str(store.get("version", "1.0"))

    config.money = MoneyFormat(**raw.get("money", {}))
    config.compatibility = CompatibilityConfig(**raw.get("compatibility", {}))

    for c in raw.get("shared_categories", []):
        config.shared_categories.append(VariationCategory(**{"store_id": config.store_id, **c}))

    logger.info(
        f"Loaded store config '{config.store_id}' from {config_path} "
        f"({len(config.shared_categories)} shared categories)"
    )
    return config


def load_catalog(store_id: Optional[str] = None, catalog_path: Optional[str] = None) -> InMemoryCatalog:
    """Build the in-memory catalog of a store, sharing its store-level categories."""
    if store_id is None:
        store_id = DEFAULT_STORE
    config = get_config(store_id)
    if catalog_path is None:
        catalog_path = _TENANTS_DIR / store_id / "catalog.yaml"

    with open(catalog_path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    for product in raw.get("products", []):
        product.setdefault("store_id", config.store_id)
    return InMemoryCatalog.from_dict(raw, shared_categories=config.shared_categories)


# =============================================================================
# GLOBAL CONFIG CACHE
# =============================================================================

# Per-store config storage
_configs: dict[str, StoreConfig] = {}


def get_config(store_id: Optional[str] = None) -> StoreConfig:
    """Get the loaded store configuration, loading it on first use."""
    if store_id is None:
        store_id = DEFAULT_STORE

    if store_id not in _configs:
        _configs[store_id] = load_store_config(store_id=store_id)

    return _configs[store_id]


def reload_config(config_path: Optional[str] = None, store_id: Optional[str] = None) -> StoreConfig:
    """Force reload of a store configuration.

    Args:
        config_path: Optional specific path to load from.
        store_id: Optional store to reload. If None, reloads DEFAULT_STORE.
    """
    if store_id is None:
        store_id = DEFAULT_STORE

    _configs[store_id] = load_store_config(config_path, store_id)
    return _configs[store_id]
