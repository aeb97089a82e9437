"""RestaurantSettings aggregate: admin-controlled switches for ordering.

There is a single settings record. Until an admin saves it, the defaults
come from the ``[custom]`` table of the domain configuration.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Float, String, Text
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.errors import store_guard

SETTINGS_ID = "restaurant"

_EDITABLE_FIELDS = ("restaurant_name", "tax_rate", "currency", "allow_guest_orders", "allow_table_orders")


def custom_setting(name, default):
    """A value from the ``[custom]`` table of the domain configuration."""
    custom = dining.config.get("custom") or {}
    return custom.get(name, default)


@dining.event(part_of="RestaurantSettings")
class SettingsUpdated:
    """Restaurant settings were changed by an admin."""

    __version__ = 1

    changes = Text(required=True)  # JSON: {field: new value}
    updated_at = DateTime(required=True)


@dining.aggregate
class RestaurantSettings:
    restaurant_name = String(max_length=255)
    tax_rate = Float(min_value=0.0, max_value=1.0)
    currency = String(max_length=3)
    allow_guest_orders = Boolean(default=True)
    allow_table_orders = Boolean(default=True)
    updated_at = DateTime()

    def update(self, **changes):
        applied = {}
        for field_name in _EDITABLE_FIELDS:
            value = changes.get(field_name)
            if value is None or getattr(self, field_name) == value:
                continue
            setattr(self, field_name, value)
            applied[field_name] = value

        if not applied:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(SettingsUpdated(changes=json.dumps(applied), updated_at=now))


def default_settings():
    """An unsaved settings record built from the configured defaults."""
    return RestaurantSettings(
        id=SETTINGS_ID,
        restaurant_name=custom_setting("RESTAURANT_NAME", "Gourmet Express"),
        tax_rate=float(custom_setting("TAX_RATE", "0.08")),
        currency=custom_setting("CURRENCY", "USD"),
        allow_guest_orders=True,
        allow_table_orders=True,
    )


def current_settings():
    """The saved settings, or the configured defaults when nothing was saved yet."""
    with store_guard("Loading settings"):
        try:
            return current_domain.repository_for(RestaurantSettings).get(SETTINGS_ID)
        except ObjectNotFoundError:
            return default_settings()


@dining.command(part_of="RestaurantSettings")
class UpdateSettings:
    restaurant_name = String(max_length=255)
    tax_rate = Float(min_value=0.0, max_value=1.0)
    currency = String(max_length=3)
    allow_guest_orders = Boolean()
    allow_table_orders = Boolean()


@dining.command_handler(part_of=RestaurantSettings)
class UpdateSettingsHandler:
    @handle(UpdateSettings)
    def update_settings(self, command):
        settings = current_settings()
        settings.update(
            restaurant_name=command.restaurant_name,
            tax_rate=command.tax_rate,
            currency=command.currency,
            allow_guest_orders=command.allow_guest_orders,
            allow_table_orders=command.allow_table_orders,
        )
        current_domain.repository_for(RestaurantSettings).add(settings)
