import logging
import pytest
from datetime import timezone

from couriers.models import UserRole
from orders.models import OrderStatus
from routing.address_client import AddressResolutionError, PostalAddress
from dispatch.dispatcher import OrderDispatcher
from dispatch.errors import (
    Forbidden,
    InvalidTransition,
    MissingDeliveryProof,
    MissingZipCode,
    NotFound,
    NotificationFailed,
)
from dispatch.state_machines.order_state import OrderTransitionAuthority

from conftest import make_order, make_recipient


class FakeUploader:
    def __init__(self):
        self.uploads = []

    def upload(self, image_file):
        self.uploads.append(image_file)
        return f"https://photos.test/{len(self.uploads)}.jpg"


class FakeNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_status_update(self, email, name, message, tracking_code):
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append((email, name, message, tracking_code))


class FixedResolver:
    def resolve_postal_code(self, zip_code):
        return PostalAddress("01310-100", "Avenida Paulista", "Bela Vista", "Sao Paulo", "SP", 1.0, 1.0)

    def geocode_address(self, address):
        return (None, None)


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def dispatcher(order_store, user_store, uploader, notifier, fixed_clock):
    return OrderDispatcher(
        order_store,
        user_store,
        address_resolver=FixedResolver(),
        photo_uploader=uploader,
        notifier=notifier,
        authority=OrderTransitionAuthority(order_lookup=order_store, clock=fixed_clock),
        tracking_code_factory=lambda carrier, state: f"FF000000001{state.upper()}",
    )


def test_create_order_starts_pending_with_tracking_code(dispatcher, order_store, deliveryman, notifier, fixed_clock):
    order_store.save_recipient(make_recipient("rcp_1"))

    order = dispatcher.create_order("rcp_1", deliveryman.id)

    assert order.status == OrderStatus.PENDING
    assert order.tracking_code == "FF000000001SP"
    assert order.created_at == fixed_clock()
    assert order.deliveryman == deliveryman
    assert order_store.find_by_id(order.id) is order
    assert notifier.sent[0][0] == "ana@example.com"
    assert notifier.sent[0][3] == "FF000000001SP"


def test_create_order_without_agent(dispatcher, order_store):
    order_store.save_recipient(make_recipient("rcp_1"))

    order = dispatcher.create_order("rcp_1")

    assert order.deliveryman is None


def test_create_order_validates_references(dispatcher, order_store, admin):
    with pytest.raises(NotFound):
        dispatcher.create_order("missing")

    order_store.save_recipient(make_recipient("rcp_1"))
    with pytest.raises(NotFound):
        dispatcher.create_order("rcp_1", "ghost")
    with pytest.raises(Forbidden):
        dispatcher.create_order("rcp_1", admin.id)


def test_update_order_reassigns_agent_and_recipient(dispatcher, order_store, deliveryman, other_deliveryman):
    order_store.save(make_order("o1", deliveryman=deliveryman))
    order_store.save_recipient(make_recipient("rcp_new"))

    order = dispatcher.update_order("o1", recipient_id="rcp_new", deliveryman_id=other_deliveryman.id)

    assert order.recipient.id == "rcp_new"
    assert order.deliveryman_id == other_deliveryman.id


def test_get_and_delete_order(dispatcher, order_store, deliveryman):
    order_store.save(make_order("o1", deliveryman=deliveryman))

    assert dispatcher.get_order("o1").id == "o1"

    dispatcher.delete_order("o1")
    with pytest.raises(NotFound):
        dispatcher.get_order("o1")
    with pytest.raises(NotFound):
        dispatcher.delete_order("o1")


def test_list_orders_filters(dispatcher, order_store, deliveryman, other_deliveryman):
    order_store.save(make_order("o1", status=OrderStatus.PENDING, deliveryman=deliveryman))
    order_store.save(make_order("o2", status=OrderStatus.PICKED_UP, deliveryman=deliveryman))
    order_store.save(make_order("o3", status=OrderStatus.PICKED_UP, deliveryman=other_deliveryman))

    assert [o.id for o in dispatcher.list_orders()] == ["o1", "o2", "o3"]
    assert [o.id for o in dispatcher.list_orders(status=OrderStatus.PICKED_UP)] == ["o2", "o3"]
    assert [o.id for o in dispatcher.list_orders(OrderStatus.PICKED_UP, deliveryman.id)] == ["o2"]
    assert [o.id for o in dispatcher.find_deliveries(other_deliveryman.id)] == ["o3"]


def test_full_lifecycle_with_return(dispatcher, order_store, deliveryman, admin, notifier):
    order_store.save(make_order("o1", deliveryman=deliveryman))

    dispatcher.mark_awaiting_pickup("o1", admin.id, UserRole.ADMIN)
    dispatcher.pickup_order("o1", deliveryman.id, UserRole.DELIVERYMAN)
    order = dispatcher.return_order("o1", deliveryman.id, UserRole.DELIVERYMAN)

    assert order.status == OrderStatus.RETURNED
    assert order.returned_at is not None
    assert [message for _, _, message, _ in notifier.sent] == [
        "Your package is ready to be collected by the delivery agent.",
        "Your package is out for delivery.",
        "We could not deliver your package and it was returned to the carrier.",
    ]


def test_mark_delivered_uploads_photo_then_advances(dispatcher, order_store, deliveryman, uploader, fixed_clock):
    order_store.save(make_order("o1", status=OrderStatus.PICKED_UP, deliveryman=deliveryman))

    order = dispatcher.mark_delivered("o1", deliveryman.id, b"jpeg-bytes")

    assert uploader.uploads == [b"jpeg-bytes"]
    assert order.status == OrderStatus.DELIVERED
    assert order.delivery_photo == "https://photos.test/1.jpg"
    assert order.delivered_at == fixed_clock()


@pytest.mark.parametrize("acting_user, photo, status, error", [
    ("agent_2", b"jpeg-bytes", OrderStatus.PICKED_UP, Forbidden),
    ("admin_1", b"jpeg-bytes", OrderStatus.PICKED_UP, Forbidden),
    ("agent_1", None, OrderStatus.PICKED_UP, MissingDeliveryProof),
    ("agent_1", b"jpeg-bytes", OrderStatus.AWAITING_PICKUP, InvalidTransition),
    ("agent_1", b"jpeg-bytes", OrderStatus.DELIVERED, InvalidTransition),
])
def test_rejected_delivery_never_uploads(dispatcher, order_store, deliveryman, uploader,
                                         acting_user, photo, status, error):
    order_store.save(make_order("o1", status=status, deliveryman=deliveryman))

    with pytest.raises(error):
        dispatcher.mark_delivered("o1", acting_user, photo)

    assert uploader.uploads == []
    assert order_store.find_by_id("o1").status == status
    assert order_store.find_by_id("o1").delivery_photo is None


def test_mark_delivered_unknown_order(dispatcher, deliveryman):
    with pytest.raises(NotFound):
        dispatcher.mark_delivered("missing", deliveryman.id, b"jpeg-bytes")


def test_recipient_without_email_is_not_notified(dispatcher, order_store, deliveryman, notifier):
    recipient = make_recipient("rcp_quiet", email=None)
    order_store.save(make_order("o1", deliveryman=deliveryman, recipient=recipient))

    dispatcher.mark_awaiting_pickup("o1", deliveryman.id, UserRole.DELIVERYMAN)

    assert notifier.sent == []


def test_notifier_failure_is_typed(order_store, user_store, deliveryman):
    dispatcher = OrderDispatcher(order_store, user_store, notifier=FakeNotifier(fail=True))
    order_store.save(make_order("o1", deliveryman=deliveryman))

    with pytest.raises(NotificationFailed):
        dispatcher.mark_awaiting_pickup("o1", deliveryman.id, UserRole.DELIVERYMAN)


def test_find_nearby_validates_agent_then_ranks(dispatcher, order_store, deliveryman, admin):
    recipient = make_recipient("rcp_geo", lat=1.01, lon=1.0)
    order_store.save(make_order("o1", status=OrderStatus.PICKED_UP, deliveryman=deliveryman, recipient=recipient))

    ranked = dispatcher.find_nearby_deliveries(deliveryman.id, "01310100")
    assert [item.order.id for item in ranked] == ["o1"]
    assert ranked[0].distance_label == "1.11 km"

    with pytest.raises(NotFound):
        dispatcher.find_nearby_deliveries("ghost", "01310100")
    with pytest.raises(Forbidden):
        dispatcher.find_nearby_deliveries(admin.id, "01310100")
    with pytest.raises(MissingZipCode):
        dispatcher.find_nearby_deliveries(deliveryman.id, "")


class ScriptedResolver:
    """Postal lookup and geocoder answers chosen per test; records geocoder queries."""

    def __init__(self, address=None, geocoded=(None, None), error=None):
        self.address = address
        self.geocoded = geocoded
        self.error = error
        self.geocode_calls = []

    def resolve_postal_code(self, zip_code):
        if self.error:
            raise self.error
        return self.address

    def geocode_address(self, address):
        self.geocode_calls.append(address)
        return self.geocoded


def test_register_recipient_completes_address_and_geocodes(order_store, user_store):
    resolver = ScriptedResolver(
        PostalAddress("01310-100", "Avenida Paulista", "Bela Vista", "São Paulo", "SP"),
        geocoded=(-23.5614, -46.6559),
    )
    dispatcher = OrderDispatcher(order_store, user_store, address_resolver=resolver)
    typed = make_recipient("rcp_new")
    typed.street, typed.city, typed.state = "av paulista", "sp", "xx"

    recipient = dispatcher.register_recipient(typed)

    assert resolver.geocode_calls == ["Avenida Paulista, São Paulo, SP"]
    assert recipient.street == "Avenida Paulista"
    assert recipient.state == "SP"
    assert recipient.coordinates == (-23.5614, -46.6559)
    assert order_store.find_recipient("rcp_new") is recipient


def test_register_recipient_uses_embedded_coordinates(order_store, user_store):
    resolver = ScriptedResolver(
        PostalAddress("01310-100", "Avenida Paulista", "Bela Vista", "São Paulo", "SP", -23.5, -46.6)
    )
    dispatcher = OrderDispatcher(order_store, user_store, address_resolver=resolver)

    recipient = dispatcher.register_recipient(make_recipient("rcp_new"))

    assert recipient.coordinates == (-23.5, -46.6)
    assert resolver.geocode_calls == []


def test_register_recipient_stores_null_coordinates_when_resolution_fails(order_store, user_store, caplog):
    resolver = ScriptedResolver(error=AddressResolutionError("network down"))
    dispatcher = OrderDispatcher(order_store, user_store, address_resolver=resolver)

    with caplog.at_level(logging.WARNING, logger="dispatch.dispatcher"):
        recipient = dispatcher.register_recipient(make_recipient("rcp_new", lat=1.0, lon=2.0))

    assert recipient.latitude is None
    assert recipient.longitude is None
    assert order_store.find_recipient("rcp_new") is recipient
    assert "rcp_new" in caplog.text


def test_registered_recipient_without_coordinates_is_skipped_by_nearby(order_store, user_store, deliveryman):
    resolver = ScriptedResolver(
        PostalAddress("01310-100", "Avenida Paulista", "Bela Vista", "São Paulo", "SP", 1.0, 1.0)
    )
    dispatcher = OrderDispatcher(order_store, user_store, address_resolver=resolver)
    located = dispatcher.register_recipient(make_recipient("rcp_located"))
    resolver.address = PostalAddress("99999-999", "", "", "", "")
    unlocated = dispatcher.register_recipient(make_recipient("rcp_unlocated"))
    order_store.save(make_order("o1", status=OrderStatus.PICKED_UP, deliveryman=deliveryman, recipient=unlocated))
    order_store.save(make_order("o2", status=OrderStatus.PICKED_UP, deliveryman=deliveryman, recipient=located))

    resolver.address = PostalAddress("01310-100", "Avenida Paulista", "Bela Vista", "São Paulo", "SP", 1.0, 1.0)
    ranked = dispatcher.find_nearby_deliveries(deliveryman.id, "01310100")

    assert unlocated.coordinates is None
    assert [item.order.id for item in ranked] == ["o2"]


def test_register_recipient_without_resolver_stores_as_given(order_store, user_store):
    dispatcher = OrderDispatcher(order_store, user_store)

    recipient = dispatcher.register_recipient(make_recipient("rcp_new", lat=3.0, lon=4.0))

    assert recipient.coordinates == (3.0, 4.0)


def test_list_orders_accepts_raw_status_values(dispatcher, order_store, deliveryman):
    order_store.save(make_order("o1", status=OrderStatus.PENDING, deliveryman=deliveryman))
    order_store.save(make_order("o2", status=OrderStatus.PICKED_UP, deliveryman=deliveryman))

    assert [o.id for o in dispatcher.list_orders(status="picked_up")] == ["o2"]
    assert [o.id for o in dispatcher.list_orders(status="lost")] == ["o1", "o2"]


def test_default_clock_is_timezone_aware(order_store, user_store, deliveryman):
    dispatcher = OrderDispatcher(order_store, user_store)
    order_store.save_recipient(make_recipient("rcp_1"))

    order = dispatcher.create_order("rcp_1", deliveryman.id)
    dispatcher.mark_awaiting_pickup(order.id, deliveryman.id, UserRole.DELIVERYMAN)

    assert order.created_at.tzinfo == timezone.utc
    assert order.awaiting_pickup_at.tzinfo == timezone.utc
