"""Pin StoreConfig loading from tenants/demo_store."""

from decimal import Decimal

from configurator.catalog import InMemoryCatalog
from configurator.config_loader import (
    MoneyFormat,
    StoreConfig,
    get_available_stores,
    get_config,
    load_store_config,
    reload_config,
)
from configurator.logic.money import format_money
from configurator.models import CategoryKind


class TestConfigLoading:
    def test_load_config_returns_store_config(self, demo_config):
        assert isinstance(demo_config, StoreConfig)

    def test_store_metadata(self, demo_config):
        assert demo_config.store_id == "demo_store"
        assert demo_config.store_name == "Demo Store"

    def test_money_format(self, demo_config):
        assert demo_config.money == MoneyFormat()
        assert format_money(Decimal("59.9"), demo_config.money) == "R$ 59,90"

    def test_open_world_compatibility(self, demo_config):
        assert demo_config.compatibility.default_available is True

    def test_shared_categories(self, demo_config):
        extras = demo_config.get_shared_category("extras")
        assert extras.max_items == 3
        assert extras.kind == CategoryKind.ADDON
        assert extras.store_id == "demo_store"
        assert demo_config.get_shared_category("desserts") is None

    def test_config_is_cached(self):
        assert get_config("demo_store") is get_config("demo_store")

    def test_reload_replaces_cache(self):
        before = get_config("demo_store")
        after = reload_config(store_id="demo_store")
        assert after is not before
        assert get_config("demo_store") is after

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "store:\n"
            "  id: tiny\n"
            "compatibility:\n"
            "  default_available: false\n",
            encoding="utf-8",
        )
        config = load_store_config(config_path=str(path))
        assert config.store_id == "tiny"
        assert config.compatibility.default_available is False
        assert config.shared_categories == []


class TestStoreDiscovery:
    def test_demo_store_discovered(self):
        stores = get_available_stores()
        assert "demo_store" in [s["id"] for s in stores]

    def test_store_has_metadata(self):
        demo = next(s for s in get_available_stores() if s["id"] == "demo_store")
        assert demo["name"] == "Demo Store"


class TestDemoCatalog:
    def test_catalog_loaded(self, demo_catalog):
        assert isinstance(demo_catalog, InMemoryCatalog)
        assert demo_catalog.product_ids() == ["classic-tee", "pizza", "sticker"]

    def test_prices_are_exact(self, demo_catalog):
        entry = demo_catalog.get_entry("classic-tee")
        assert entry.product.price == Decimal("59.90")
        assert entry.color("red").price_adjustment == Decimal("5.00")

    def test_products_inherit_store(self, demo_catalog):
        assert demo_catalog.get_entry("sticker").product.store_id == "demo_store"

    def test_shared_categories_attached(self, demo_catalog):
        entry = demo_catalog.get_entry("pizza")
        assert entry.category_of("cola").id == "drinks"
        assert entry.item_ids_in("extras") == ["extra-cheese", "bacon", "olives", "mushrooms"]

    def test_flavor_category_uses_max_flavor_count(self, demo_catalog):
        entry = demo_catalog.get_entry("pizza")
        assert entry.categories_of(CategoryKind.FLAVOR)[0].max_items == 2
