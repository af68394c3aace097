from datetime import UTC, datetime, time, timedelta

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

from fulfillment.carrier import set_carrier
from fulfillment.carrier.fake_adapter import FakeCarrier
from fulfillment.pickup import set_pickup
from fulfillment.pickup.fake_adapter import InMemoryPickup
from fulfillment.pickup.port import PickupLocation
from inventory.catalog import set_catalog
from inventory.catalog.fake_adapter import InMemoryCatalog
from inventory.catalog.port import CatalogProduct
from notifications.channel import set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from ordering.cart.cache import InMemoryCartCache
from ordering.cart.remote import RepositoryCartStore
from ordering.cart.store import CartStore
from ordering.config import CheckoutSettings, set_settings
from payments.credit import set_credit_service
from payments.credit.fake_adapter import InMemoryCreditService
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
BASIL = CatalogProduct(
    product_id="basil",
    name="Genovese Basil",
    price=20.0,
    available_quantity=50,
    category="Herbs",
)
TOMATO = CatalogProduct(
    product_id="tomato",
    name="Cherry Tomato",
    price=4.5,
    available_quantity=4,
    category="Vegetables",
)
FIG = CatalogProduct(
    product_id="fig",
    name="Fig Tree",
    price=35.0,
    available_quantity=10,
    category="Fruit Trees",
    fulfillment_constraint="shipOnly",
)
MICROGREENS = CatalogProduct(
    product_id="microgreens",
    name="Microgreens Tray",
    price=12.0,
    available_quantity=10,
    category="Microgreens",
    fulfillment_constraint="pickupOnly",
)


@pytest.fixture
def catalog():
    catalog = InMemoryCatalog([BASIL, TOMATO, FIG, MICROGREENS])
    set_catalog(catalog)
    return catalog


@pytest.fixture
def carrier():
    carrier = FakeCarrier()
    carrier.set_flat_rates({"Ground Saver": 6.00, "Express Saver": 14.50}, transit_days={"Ground Saver": 4})
    set_carrier(carrier)
    return carrier


@pytest.fixture
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture
def credit_service():
    service = InMemoryCreditService()
    set_credit_service(service)
    return service


@pytest.fixture
def email_channel():
    channel = FakeEmailAdapter()
    set_email_channel(channel)
    return channel


@pytest.fixture
def farm_pickup():
    pickup = InMemoryPickup()
    pickup.add_location(
        PickupLocation(
            location_id="farm",
            name="Home Farm",
            address_line1="100 Orchard Rd",
            city="Athens",
            state="GA",
            postal_code="30601",
        )
    )
    set_pickup(pickup)
    return pickup


@pytest.fixture
def pickup_slot(farm_pickup):
    slot_date = datetime.now(UTC).date() + timedelta(days=5)
    return farm_pickup.add_slot("farm", slot_date, time(9, 0), time(12, 0), capacity=10, booked_count=2)


@pytest.fixture
def settings():
    settings = CheckoutSettings()
    set_settings(settings)
    return settings


@pytest.fixture
def adapters(catalog, carrier, gateway, credit_service, email_channel, farm_pickup, settings):
    return {
        "catalog": catalog,
        "carrier": carrier,
        "gateway": gateway,
        "credit": credit_service,
        "email": email_channel,
        "pickup": farm_pickup,
        "settings": settings,
    }


@pytest.fixture
def cart_store(catalog):
    store = CartStore(InMemoryCartCache(), RepositoryCartStore(), catalog)
    store.load()
    return store
