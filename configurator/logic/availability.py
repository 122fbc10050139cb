"""Variant Availability Resolver.

Decides which colors and sizes remain selectable given a partial selection,
using the explicit color/size compatibility matrix.

Algorithm:
1. INDEX: compatibility rows keyed by color id and by size id
2. SELF FILTER: drop items whose own availability flag is off
3. CROSS FILTER: with a size chosen, a color is offered iff no row exists for
   (color, size) or the row is available. Symmetric for sizes given a color.
4. With nothing chosen on the other axis, the self-filtered catalogue is offered.

Missing rows default to "available" (open world). Stores that treat the matrix
as an allow-list can flip `default_available` in their config.

Pure: no side effects, no state of its own beyond the index.
"""

import logging
from typing import Optional

from configurator.catalog import CatalogEntry, Item
from configurator.logic.state import SelectionState
from configurator.models import CategoryKind, ColorOption, Flavor, Variant

logger = logging.getLogger(__name__)


class VariantAvailabilityResolver:
    """Filters offerable options for one catalog entry."""

    def __init__(self, entry: CatalogEntry, default_available: bool = True):
        self.entry = entry
        self.default_available = default_available

        self._by_color: dict[str, dict[str, bool]] = {}
        self._by_size: dict[str, dict[str, bool]] = {}
        for row in entry.compatibility:
            self._by_color.setdefault(row.color_id, {})[row.size_id] = row.is_available
            self._by_size.setdefault(row.size_id, {})[row.color_id] = row.is_available

        logger.debug(
            f"Indexed {len(entry.compatibility)} compatibility row(s) for '{entry.product.id}' "
            f"(missing rows default to {'available' if default_available else 'unavailable'})"
        )

    def compatibility_record(self, color_id: str, size_id: str) -> Optional[bool]:
        """The explicit availability of a pair, or None when no row exists."""
        return self._by_color.get(color_id, {}).get(size_id)

    def is_compatible(self, color_id: str, size_id: str) -> bool:
        record = self.compatibility_record(color_id, size_id)
        if record is None:
            return self.default_available
        return record

    def available_colors(self, selection: SelectionState) -> list[ColorOption]:
        """Colors that can be chosen next, in display order."""
        size_ids = selection.chosen_size_ids(self.entry)
        return [
            color for color in self.entry.offered_colors()
            if color.is_available
            and all(self.is_compatible(color.id, size_id) for size_id in size_ids)
        ]

    def available_sizes(self, selection: SelectionState) -> list[Variant]:
        """Sizes that can be chosen next, in category then display order."""
        color_id = selection.color_id
        return [
            size for size in self.entry.sizes()
            if size.is_available
            and (color_id is None or self.is_compatible(color_id, size.id))
        ]

    def available_items(self, category_id: str) -> list[Item]:
        """Offerable members of an add-on (or any) category."""
        category = self.entry.category(category_id)
        if not category.is_active:
            return []
        return [item for item in self.entry.items_in(category_id) if item.is_available]

    def available_flavors(self) -> list[Flavor]:
        return [f for f in self.entry.offered_flavors() if f.is_available]

    def is_color_offered(self, color_id: str, selection: SelectionState) -> bool:
        return any(c.id == color_id for c in self.available_colors(selection))

    def is_item_offered(self, item_id: str, selection: SelectionState) -> bool:
        """Whether selecting this size/add-on/flavor is currently allowed."""
        category = self.entry.category_of(item_id)
        if not self.entry.is_dimension_enabled(category.kind):
            return False
        if category.kind == CategoryKind.SIZE:
            return any(s.id == item_id for s in self.available_sizes(selection))
        return any(i.id == item_id for i in self.available_items(category.id))
