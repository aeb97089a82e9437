"""Application tests for checkout: PlaceOrder through the command handler."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from dining.errors import EmptyCartError
from dining.identity.profile import RegisterProfile
from dining.menu.management import RemoveMenuItem, SetMenuItemAvailability, UpdateMenuItem
from dining.order.order import Order
from dining.order.placement import PlaceOrder
from dining.projections.kitchen_ticket import KitchenTicket
from dining.settings.settings import UpdateSettings


def _place(items, **overrides):
    values = {
        "items": json.dumps(items),
        "fulfillment_type": "dine-in",
        "table_number": "12",
        "payment_method": "card",
        "customer_name": "Jordan",
    }
    values.update(overrides)
    return current_domain.process(PlaceOrder(**values), asynchronous=False)


def _order_count():
    return len(current_domain.repository_for(KitchenTicket)._dao.query.all().items)


class TestPlaceOrder:
    def test_reference_cart(self, menu):
        order_id = _place({menu["salmon"]: 2, menu["salad"]: 1})
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "pending"
        assert order.pricing.subtotal == 52.97
        assert order.pricing.tax_total == 4.24
        assert order.pricing.grand_total == 57.21
        assert order.pricing.tax_rate == 0.08
        assert order.pricing.currency == "USD"

    def test_lines_survive_menu_edits(self, menu):
        order_id = _place({menu["salmon"]: 2, menu["salad"]: 1})
        current_domain.process(UpdateMenuItem(menu_item_id=menu["salmon"], price=21.5), asynchronous=False)
        current_domain.process(RemoveMenuItem(menu_item_id=menu["salad"]), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        prices = sorted(line.unit_price for line in order.lines)
        assert prices == [14.99, 18.99]
        assert order.pricing.grand_total == 57.21

    def test_empty_cart_inserts_nothing(self, menu):
        with pytest.raises(EmptyCartError):
            _place({})
        assert _order_count() == 0

    def test_unavailable_items_are_dropped(self, menu):
        current_domain.process(
            SetMenuItemAvailability(menu_item_id=menu["salad"], is_available=False), asynchronous=False
        )
        order_id = _place({menu["salmon"]: 1, menu["salad"]: 3, "deleted-item": 2})
        order = current_domain.repository_for(Order).get(order_id)
        assert [line.name for line in order.lines] == ["Grilled Salmon"]
        assert order.pricing.subtotal == 18.99

    def test_nothing_resolves(self, menu):
        with pytest.raises(EmptyCartError):
            _place({"deleted-item": 2})
        assert _order_count() == 0

    def test_dine_in_without_table(self, menu):
        with pytest.raises(ValidationError) as exc:
            _place({menu["salmon"]: 1}, table_number=None)
        assert "table_number" in exc.value.messages
        assert _order_count() == 0

    def test_delivery_without_address(self, menu):
        with pytest.raises(ValidationError):
            _place({menu["salmon"]: 1}, fulfillment_type="delivery", table_number=None)

    def test_guest_needs_a_name(self, menu):
        with pytest.raises(ValidationError) as exc:
            _place({menu["salmon"]: 1}, customer_name=None)
        assert "customer_name" in exc.value.messages

    def test_authenticated_checkout_uses_profile(self, menu):
        current_domain.process(
            RegisterProfile(user_id="user-1", display_name="Sam Rivera", email="sam@example.com"),
            asynchronous=False,
        )
        order_id = _place({menu["salmon"]: 1}, customer_id="user-1", customer_name=None)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.customer_name == "Sam Rivera"
        assert order.customer_email == "sam@example.com"
        assert str(order.customer_id) == "user-1"

    def test_repeated_checkout_token_returns_same_order(self, menu):
        first = _place({menu["salmon"]: 1}, checkout_token="tok-123")
        second = _place({menu["salmon"]: 1}, checkout_token="tok-123")
        assert first == second
        assert _order_count() == 1

    def test_different_tokens_create_different_orders(self, menu):
        first = _place({menu["salmon"]: 1}, checkout_token="tok-a")
        second = _place({menu["salmon"]: 1}, checkout_token="tok-b")
        assert first != second


class TestSettingsAtCheckout:
    def test_guest_orders_disabled(self, menu):
        current_domain.process(UpdateSettings(allow_guest_orders=False), asynchronous=False)
        with pytest.raises(ValidationError) as exc:
            _place({menu["salmon"]: 1})
        assert "customer_id" in exc.value.messages

    def test_guest_orders_disabled_still_allows_members(self, menu):
        current_domain.process(UpdateSettings(allow_guest_orders=False), asynchronous=False)
        current_domain.process(
            RegisterProfile(user_id="user-2", display_name="Ada", email="ada@example.com"), asynchronous=False
        )
        assert _place({menu["salmon"]: 1}, customer_id="user-2")

    def test_table_orders_disabled(self, menu):
        current_domain.process(UpdateSettings(allow_table_orders=False), asynchronous=False)
        with pytest.raises(ValidationError) as exc:
            _place({menu["salmon"]: 1})
        assert "fulfillment_type" in exc.value.messages
        assert _place({menu["salmon"]: 1}, fulfillment_type="takeaway", table_number=None)

    def test_tax_rate_from_settings(self, menu):
        current_domain.process(UpdateSettings(tax_rate=0.1), asynchronous=False)
        order_id = _place({menu["salmon"]: 1})
        order = current_domain.repository_for(Order).get(order_id)
        assert order.pricing.tax_total == 1.9
        assert order.pricing.grand_total == 20.89
