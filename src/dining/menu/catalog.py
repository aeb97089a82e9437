"""Catalog queries: what customers can order, and the snapshot used for pricing."""

from protean.utils.globals import current_domain

from dining.errors import store_guard
from dining.menu.menu_item import MenuCategory, MenuItem

QUERY_LIMIT = 1000

_CATEGORY_ORDER = {category.value: position for position, category in enumerate(MenuCategory)}


def _menu_items(available_only):
    dao = current_domain.repository_for(MenuItem)._dao
    with store_guard("Loading menu"):
        query = dao.query.filter(is_available=True) if available_only else dao.query
        return query.limit(QUERY_LIMIT).all().items


def catalog_snapshot(available_only=True):
    """Menu items keyed by identifier, as they are at this instant."""
    return {str(item.id): item for item in _menu_items(available_only)}


def browse_menu(category=None, search=None, available_only=True):
    """Menu items filtered by category and a case-insensitive name search.

    Results are ordered by category, then by name.
    """
    items = _menu_items(available_only)

    if category and category != "All":
        items = [item for item in items if item.category == category]
    if search:
        needle = search.strip().lower()
        items = [item for item in items if needle in item.name.lower()]

    return sorted(items, key=lambda item: (_CATEGORY_ORDER.get(item.category, len(_CATEGORY_ORDER)), item.name))
