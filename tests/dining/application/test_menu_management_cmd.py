"""Application tests for menu management and the customer catalog."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from dining.menu.catalog import browse_menu, catalog_snapshot
from dining.menu.management import AddMenuItem, RemoveMenuItem, SetMenuItemAvailability, UpdateMenuItem
from dining.menu.menu_item import MenuItem


class TestAddMenuItem:
    def test_returns_id(self, menu):
        item = current_domain.repository_for(MenuItem).get(menu["salmon"])
        assert item.name == "Grilled Salmon"
        assert item.dietary == ["Gluten-Free", "High-Protein"]

    def test_hidden_item(self):
        item_id = current_domain.process(
            AddMenuItem(name="Seasonal Soup", price=7.5, category="Appetizers", is_available=False),
            asynchronous=False,
        )
        assert item_id not in catalog_snapshot()
        assert item_id in catalog_snapshot(available_only=False)


class TestEditMenuItem:
    def test_update(self, menu):
        current_domain.process(
            UpdateMenuItem(menu_item_id=menu["salad"], price=15.5, dietary_tags=json.dumps(["Vegetarian", "Keto-Friendly"])),
            asynchronous=False,
        )
        item = current_domain.repository_for(MenuItem).get(menu["salad"])
        assert item.price == 15.5
        assert item.dietary == ["Keto-Friendly", "Vegetarian"]

    def test_availability(self, menu):
        current_domain.process(
            SetMenuItemAvailability(menu_item_id=menu["salad"], is_available=False), asynchronous=False
        )
        assert [item.name for item in browse_menu()] == ["Grilled Salmon"]

    def test_remove(self, menu):
        current_domain.process(RemoveMenuItem(menu_item_id=menu["salad"]), asynchronous=False)
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(MenuItem).get(menu["salad"])


class TestBrowseMenu:
    def test_ordered_by_category_then_name(self, menu):
        current_domain.process(AddMenuItem(name="Lemonade", price=3.5, category="Beverages"), asynchronous=False)
        current_domain.process(AddMenuItem(name="Beef Burger", price=15.0, category="Mains"), asynchronous=False)
        names = [item.name for item in browse_menu()]
        assert names == ["Beef Burger", "Grilled Salmon", "Caesar Salad", "Lemonade"]

    def test_category_filter(self, menu):
        assert [item.name for item in browse_menu(category="Salads")] == ["Caesar Salad"]
        assert len(browse_menu(category="All")) == 2

    def test_search_is_case_insensitive(self, menu):
        assert [item.name for item in browse_menu(search="SALMON")] == ["Grilled Salmon"]

    def test_no_match(self, menu):
        assert browse_menu(search="pizza") == []
