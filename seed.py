"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample users (one with push turned off)
  - 6 sample rides (pending, accepted, completed, cancelled)
  - push subscriptions for most users, two devices for some
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from rideshare.domain.enums import RideStatus
from rideshare.infrastructure.database import async_session_factory, engine
from rideshare.infrastructure.repositories import (
    PushSubscriptionRepository,
    RideRepository,
    UserRepository,
)


USERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com"},
    {"name": "Priya Patel", "email": "priya@example.com"},
    {"name": "Rohan Mehta", "email": "rohan@example.com"},
    {"name": "Sneha Gupta", "email": "sneha@example.com"},
    {"name": "Vikram Singh", "email": "vikram@example.com", "push_enabled": False},
    {"name": "Meera Nair", "email": "meera@example.com"},
]

# (user index, device id, device name)
DEVICES = [
    (0, "aarav-phone", "Pixel 8"),
    (0, "aarav-laptop", "Firefox on Linux"),
    (1, "priya-phone", "iPhone 15"),
    (2, "rohan-phone", "Galaxy S23"),
    (3, "sneha-laptop", "Chrome on macOS"),
    (5, "meera-phone", "Pixel 7"),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        users = UserRepository(session)
        rides = RideRepository(session)
        subs = PushSubscriptionRepository(session)

        # ── Users ─────────────────────────────────────────────────────
        user_models = [await users.create(**u) for u in USERS]
        print(f"  Created {len(user_models)} users")

        # ── Push subscriptions ────────────────────────────────────────
        for idx, device_id, device_name in DEVICES:
            await subs.upsert(
                user_id=user_models[idx].id,
                device_id=device_id,
                device_name=device_name,
                subscription={
                    "endpoint": f"https://push.example.com/send/{device_id}",
                    "keys": {"p256dh": f"key-{device_id}", "auth": f"auth-{device_id}"},
                },
            )
        print(f"  Created {len(DEVICES)} push subscriptions")

        # ── Rides ─────────────────────────────────────────────────────
        soon = datetime.now(timezone.utc) + timedelta(hours=3)
        rides_data = [
            {
                "requester": 0, "accepter": None,
                "from": "Central Station", "to": "Airport Terminal 2",
                "status": RideStatus.PENDING, "seats": 1,
            },
            {
                "requester": 1, "accepter": None,
                "from": "University Campus", "to": "City Hospital",
                "status": RideStatus.PENDING, "seats": 2,
            },
            {
                "requester": 2, "accepter": 3,
                "from": "Old Town", "to": "Harbour Market",
                "status": RideStatus.ACCEPTED, "seats": 1,
            },
            {
                "requester": 3, "accepter": 0,
                "from": "Tech Park", "to": "Riverside Apartments",
                "status": RideStatus.ACCEPTED, "seats": 3,
            },
            {
                "requester": 4, "accepter": 5,
                "from": "Stadium", "to": "North Suburbs",
                "status": RideStatus.COMPLETED, "seats": 1,
            },
            {
                "requester": 5, "accepter": None,
                "from": "Library", "to": "Bus Depot",
                "status": RideStatus.CANCELLED, "seats": 1,
            },
        ]

        for i, r in enumerate(rides_data):
            accepter = r["accepter"]
            await rides.create_ride(
                requester_id=user_models[r["requester"]].id,
                accepter_id=user_models[accepter].id if accepter is not None else None,
                from_location=r["from"],
                to_location=r["to"],
                departure_time=soon + timedelta(hours=i),
                status=r["status"],
                seats=r["seats"],
                rider_name=USERS[r["requester"]]["name"],
            )
        print(f"  Created {len(rides_data)} rides")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
