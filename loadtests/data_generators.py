"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that match the field names of the API's
Pydantic request schemas and pass the domain's validation rules.
"""

import random
import uuid

from faker import Faker

fake = Faker()

DELIVERY_TYPES = ["instant", "next-day", "weekly-station"]
PICKUP_POINTS = ["Legon Hall", "Akuafo Hall", "Night Market", "Commonwealth Hall", "Balme Library"]
DROPOFF_POINTS = ["Osu Oxford Street", "East Legon", "Madina Market", "Airport Residential", "Accra Mall"]


def valid_phone() -> str:
    return f"02{random.randint(0, 9)}{random.randint(1000000, 9999999)}"


def rider_code() -> str:
    """Generate unique rider codes like 'LT-A1B2C3'."""
    return f"LT-{uuid.uuid4().hex[:6].upper()}"


def rider_data() -> dict:
    """RegisterRiderRequest payload."""
    return {
        "name": fake.name()[:100],
        "phone": valid_phone(),
        "rider_code": rider_code(),
    }


def delivery_data(delivery_type: str | None = None) -> dict:
    """CreateDeliveryRequest payload."""
    return {
        "name": fake.name()[:100],
        "contact": valid_phone(),
        "user_email": f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "item_description": fake.sentence(nb_words=4)[:200],
        "pickup_point": random.choice(PICKUP_POINTS),
        "dropoff_point": random.choice(DROPOFF_POINTS),
        "delivery_type": delivery_type or random.choice(DELIVERY_TYPES),
        "notes": fake.sentence(nb_words=8) if random.random() < 0.3 else None,
    }


def payment_data() -> dict:
    return {
        "payment_status": "paid",
        "payment_method": random.choice(["cash", "mobile-money", "card"]),
    }


def cancellation_reason() -> str:
    return random.choice(["Customer unreachable", "Duplicate request", "Item not ready", "Customer cancelled"])
