#!/usr/bin/env python3
"""
Seed a local database with realistic back-office data.

Creates:
- Products (phones with stock levels and low-stock thresholds)
- Threads and messages (customer, human admin and bot replies)
- Exchanges (pending, quoted, completed)
- Demand events (bot, search, select)

Usage:
    python scripts/seed_demo_data.py           # Seed all data
    python scripts/seed_demo_data.py --clear   # Clear all data
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete

from phonedesk.analytics.windows import HOUR_MS, MINUTE_MS, current_time_ms
from phonedesk.db.models import Base, DemandEvent, Exchange, Message, Product, Thread
from phonedesk.db.session import AsyncSessionLocal, engine
from phonedesk.ingest.demand_events import normalize_phone_type

PHONES = [
    ("iPhone", "iPhone 13", 4, 2),
    ("iPhone", "iPhone 14 Pro", 1, 2),
    ("iPhone", "iPhone 15 Pro Max", 0, 1),
    ("Samsung", "Galaxy S23", 6, 2),
    ("Samsung", "Galaxy A54", 9, 3),
    ("Tecno", "Camon 20", 12, None),
    ("Infinix", "Note 30", 3, 3),
    ("Xiaomi", "Redmi Note 12", 7, 2),
]

FIRST_NAMES = ["Abebe", "Meron", "Dawit", "Hana", "Yonas", "Selam", "Kidus", "Liya", "Nahom", "Saron"]

REQUESTED = ["iPhone 15 Pro Max", "iPhone 13", "Galaxy S23", "Pixel 8", "iPhone 14 Pro", "Redmi Note 12"]


async def clear_data():
    async with AsyncSessionLocal() as session:
        for model in (DemandEvent, Message, Exchange, Thread, Product):
            await session.execute(delete(model))
        await session.commit()
    print("Cleared all data")


async def seed_data():
    now = current_time_ms()
    rng = random.Random(42)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        products = []
        for brand, model, stock, threshold in PHONES:
            product = Product(
                brand=brand,
                model=model,
                phone_type=model,
                price=rng.randint(15, 120) * 1000,
                stock_quantity=stock,
                low_stock_threshold=threshold,
                created_at=now - 30 * 24 * HOUR_MS,
            )
            session.add(product)
            products.append(product)
        await session.flush()

        for i, name in enumerate(FIRST_NAMES):
            first_at = now - rng.randint(1, 60) * HOUR_MS
            thread = Thread(
                telegram_id=str(100000 + i),
                customer_first_name=name,
                status=rng.choice(["new", "seen", "done"]),
                created_at=first_at,
                first_message_at=first_at if i % 4 else None,
                has_customer_messaged=True,
            )
            session.add(thread)
            await session.flush()

            ts = first_at
            for _ in range(rng.randint(1, 4)):
                session.add(Message(thread_id=thread.id, sender="customer", text="Selam", created_at=ts))
                thread.last_customer_message_at = ts
                ts += rng.randint(1, 90) * MINUTE_MS
                if ts >= now:
                    break
                role = "bot" if rng.random() < 0.3 else "admin"
                session.add(
                    Message(thread_id=thread.id, sender="admin", sender_role=role, text="Hi!", created_at=ts)
                )
                thread.last_admin_message_at = ts
                thread.has_admin_replied = True
                ts += rng.randint(5, 240) * MINUTE_MS
                if ts >= now:
                    break
            thread.last_message_at = max(
                thread.last_customer_message_at or 0, thread.last_admin_message_at or 0
            )

            if i % 3 == 0:
                status = rng.choice(["Pending", "Quoted", "Completed"])
                session.add(
                    Exchange(
                        thread_id=thread.id,
                        desired_phone_id=rng.choice(products).id,
                        trade_in_brand="Samsung",
                        trade_in_model="Galaxy A12",
                        trade_in_storage="64GB",
                        status=status,
                        priority_value_etb=rng.randint(10, 80) * 1000,
                        created_at=first_at,
                        quoted_at=first_at + HOUR_MS if status != "Pending" else None,
                        completed_at=now - rng.randint(1, 30) * HOUR_MS if status == "Completed" else None,
                    )
                )

        for _ in range(40):
            session.add(
                DemandEvent(
                    source=rng.choice(["bot", "search", "select"]),
                    phone_type=normalize_phone_type(rng.choice(REQUESTED)),
                    created_at=now - rng.randint(0, 7 * 24) * HOUR_MS,
                )
            )

        await session.commit()
    print("Seeded demo data")


def main():
    parser = argparse.ArgumentParser(description="Seed phonedesk demo data")
    parser.add_argument("--clear", action="store_true", help="Clear all data")
    args = parser.parse_args()

    asyncio.run(clear_data() if args.clear else seed_data())


if __name__ == "__main__":
    main()
