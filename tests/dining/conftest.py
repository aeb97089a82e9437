import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def dining_bed():
    from dining.domain import dining

    bed = DomainFixture(dining)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dining_bed):
    with dining_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _reset_in_process_state():
    """Session carts, feed subscriptions and signed-up users live outside the store."""
    yield

    from dining.board.feed import order_feed
    from dining.cart.sessions import carts
    from dining.identity.provider import identity_provider

    carts.reset()
    order_feed.reset()
    identity_provider.reset()


@pytest.fixture()
def menu():
    """Two dishes on the menu, keyed by a short name."""
    import json

    from protean import current_domain

    from dining.menu.management import AddMenuItem

    salmon = current_domain.process(
        AddMenuItem(
            name="Grilled Salmon",
            price=18.99,
            category="Mains",
            dietary_tags=json.dumps(["Gluten-Free", "High-Protein"]),
            is_popular=True,
        ),
        asynchronous=False,
    )
    salad = current_domain.process(
        AddMenuItem(name="Caesar Salad", price=14.99, category="Salads", dietary_tags=json.dumps(["Vegetarian"])),
        asynchronous=False,
    )
    return {"salmon": salmon, "salad": salad}
