"""Filtering, sorting and totals over the client-side record cache."""

import locale
from collections.abc import Iterable

from spoolshelf.app.schemas.inventory import (
    ALL,
    FilamentRecord,
    FilterOptions,
    InventoryFilters,
    SortDirection,
    SortField,
    SortState,
)

LOW_STOCK_THRESHOLD = 0.25


def get_filter_options(filaments: Iterable[FilamentRecord]) -> FilterOptions:
    brands: set[str] = set()
    materials: set[str] = set()
    types: set[str] = set()

    for filament in filaments:
        brands.add(filament.brand)
        materials.add(filament.material)
        types.add(filament.type)

    return FilterOptions(
        brands=sorted(brands),
        materials=sorted(materials),
        types=sorted(types),
    )


def filter_filaments(filaments: Iterable[FilamentRecord], filters: InventoryFilters) -> list[FilamentRecord]:
    search = filters.search_color.strip().lower()

    def matches(filament: FilamentRecord) -> bool:
        if filters.brand != ALL and filament.brand != filters.brand:
            return False
        if filters.material != ALL and filament.material != filters.material:
            return False
        if filters.type != ALL and filament.type != filters.type:
            return False
        if filters.hide_out_of_stock and filament.amount <= 0:
            return False
        if search:
            return search in filament.color.lower()
        return True

    return [filament for filament in filaments if matches(filament)]


def _text_key(value: str) -> str:
    # Case-insensitive collation like a browser's localeCompare
    return locale.strxfrm(value.casefold())


def sort_filaments(filaments: Iterable[FilamentRecord], sort: SortState) -> list[FilamentRecord]:
    """Return a new list ordered by ``sort``; the input is left untouched."""
    field = SortField(sort.field)
    reverse = SortDirection(sort.direction) == SortDirection.DESC

    if field == SortField.AMOUNT:
        return sorted(filaments, key=lambda filament: filament.amount, reverse=reverse)
    return sorted(filaments, key=lambda filament: _text_key(getattr(filament, field.value)), reverse=reverse)


def toggle_sort(sort: SortState, field: SortField) -> SortState:
    """Clicking the active column flips direction; a new column starts ascending."""
    if sort.field == field:
        direction = SortDirection.DESC if sort.direction == SortDirection.ASC else SortDirection.ASC
        return SortState(field=field, direction=direction)
    return SortState(field=field, direction=SortDirection.ASC)


def get_total_spools(filaments: Iterable[FilamentRecord]) -> float:
    return sum((filament.amount for filament in filaments), 0.0)


def has_active_filters(filters: InventoryFilters) -> bool:
    return (
        filters.brand != ALL
        or filters.material != ALL
        or filters.type != ALL
        or filters.search_color.strip() != ""
        or filters.hide_out_of_stock
    )


def stock_level(amount: float) -> str:
    """Classify a spool amount as ``out``, ``low`` or ``ok``."""
    if amount <= 0:
        return "out"
    if amount < LOW_STOCK_THRESHOLD:
        return "low"
    return "ok"
