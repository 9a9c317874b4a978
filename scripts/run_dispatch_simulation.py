import csv
import logging
import os
import random
from typing import List

from couriers.models import User, UserRole
from couriers.store import InMemoryUserStore
from orders.models import OrderStatus, Recipient
from orders.store import InMemoryOrderStore
from routing.address_client import AddressClient
from dispatch.dispatcher import OrderDispatcher
from dispatch.errors import DeliveryError

# Center around Sao Paulo, Brazil
CENTER_LAT = -23.5505
CENTER_LON = -46.6333


class MockPhotoUploader:
    def upload(self, image_file):
        return f"https://photos.example/{abs(hash(image_file)) % 10**8}.jpg"


class PrintNotifier:
    def send_status_update(self, email, name, message, tracking_code):
        print(f"  [mail] {email} ({tracking_code}): {message}")


def generate_recipients(count=20, missing_coordinates_ratio=0.15) -> List[Recipient]:
    """
    Recipients scattered within ~10km of the center.
    A share of them have no stored coordinates, as happens when geocoding failed.
    """
    recipients = []
    for index in range(count):
        has_coordinates = random.random() >= missing_coordinates_ratio
        recipients.append(
            Recipient(
                id=f"rcp_{index + 1:04d}",
                first_name=f"Recipient{index + 1}",
                last_name="Test",
                street=f"Rua {index + 1}",
                number=random.randint(1, 2000),
                neighborhood="Centro",
                city="Sao Paulo",
                state="SP",
                zip_code="01001-000",
                email=f"recipient{index + 1}@example.com" if index % 3 == 0 else None,
                latitude=round(CENTER_LAT + random.uniform(-0.09, 0.09), 6) if has_coordinates else None,
                longitude=round(CENTER_LON + random.uniform(-0.09, 0.09), 6) if has_coordinates else None,
            )
        )
    return recipients


def run_simulation(zip_code="01310100"):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=== STARTING END-TO-END ORDER LIFECYCLE SIMULATION ===")

    # 1. Seed users and recipients
    order_store = InMemoryOrderStore()
    user_store = InMemoryUserStore()
    admin = user_store.save(User.new("Ops", "Admin", UserRole.ADMIN))
    agents = [user_store.save(User.new(f"Agent{i}", "Test", UserRole.DELIVERYMAN)) for i in range(3)]

    recipients = generate_recipients()
    for recipient in recipients:
        order_store.save_recipient(recipient)

    # 2. Configure System (needs GEOCODER_API_KEY in .env)
    dispatcher = OrderDispatcher(
        order_store,
        user_store,
        address_resolver=AddressClient(timeout=10),
        photo_uploader=MockPhotoUploader(),
        notifier=PrintNotifier(),
    )

    # 3. Create and advance orders
    for recipient in recipients:
        agent = random.choice(agents)
        order = dispatcher.create_order(recipient.id, agent.id)
        dispatcher.mark_awaiting_pickup(order.id, admin.id, admin.role)

        if random.random() < 0.7:
            dispatcher.pickup_order(order.id, agent.id, agent.role)
        if order.status == OrderStatus.PICKED_UP and random.random() < 0.3:
            dispatcher.mark_delivered(order.id, agent.id, f"photo-{order.id}".encode())

    print(f"Created {len(order_store)} Orders for {len(agents)} Agents.\n")

    # 4. Rank each agent's open work from the reference zip code
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "nearby_results.csv")

    with open(output_path, "w", newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["agent_id", "rank", "order_id", "tracking_code", "status", "distance"])

        for agent in agents:
            try:
                ranked = dispatcher.find_nearby_deliveries(agent.id, zip_code)
            except DeliveryError as exc:
                print(f"[SKIPPED] {agent.id}: {type(exc).__name__} - {exc}")
                continue

            print(f"--- {agent.first_name} ({len(ranked)} nearby) ---")
            for rank, item in enumerate(ranked, 1):
                writer.writerow([agent.id, rank, item.order.id, item.order.tracking_code,
                                 item.order.status.value, item.distance_label])
                print(f"  {rank}. {item.order.tracking_code} [{item.order.status.value}] {item.distance_label}")

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Results written to '{output_path}'.")


if __name__ == "__main__":
    run_simulation()
