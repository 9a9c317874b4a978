import pytest
from datetime import datetime

from couriers.models import User, UserRole
from couriers.store import InMemoryUserStore
from orders.models import Order, OrderStatus, Recipient
from orders.store import InMemoryOrderStore


def make_recipient(recipient_id="rcp_1", lat=None, lon=None, email="ana@example.com"):
    return Recipient(
        id=recipient_id,
        first_name="Ana",
        last_name="Souza",
        street="Avenida Paulista",
        number=1000,
        neighborhood="Bela Vista",
        city="Sao Paulo",
        state="sp",
        zip_code="01310-100",
        email=email,
        latitude=lat,
        longitude=lon,
    )


def make_order(order_id, status=OrderStatus.PENDING, deliveryman=None, recipient=None):
    return Order(
        id=order_id,
        recipient=recipient or make_recipient(f"rcp_{order_id}"),
        tracking_code=f"FF{order_id}SP",
        deliveryman=deliveryman,
        status=status,
        created_at=datetime(2024, 1, 1, 8, 0, 0),
    )


@pytest.fixture
def deliveryman():
    return User.new("Bruno", "Lima", UserRole.DELIVERYMAN, user_id="agent_1")


@pytest.fixture
def other_deliveryman():
    return User.new("Carla", "Reis", UserRole.DELIVERYMAN, user_id="agent_2")


@pytest.fixture
def admin():
    return User.new("Diego", "Alves", UserRole.ADMIN, user_id="admin_1")


@pytest.fixture
def order_store():
    return InMemoryOrderStore()


@pytest.fixture
def user_store(deliveryman, other_deliveryman, admin):
    store = InMemoryUserStore()
    for user in (deliveryman, other_deliveryman, admin):
        store.save(user)
    return store


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 5, 17, 14, 30, 0)
    return lambda: moment
