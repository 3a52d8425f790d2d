#!/usr/bin/env python3
"""
Database Seed Script
Populate demo data into the marketplace database

Features:
1. Create Event - one event ending in 30 days with a General Admission wave
2. Create Listing - a seller lists tickets of that wave below face value

Notes:
- Events and waves are owned by the catalog; here they are written directly
- Listings go through CreateListingUseCase so the price rules apply
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import os
import sys

import anyio
from uuid_utils.compat import uuid7

from src.platform.config.di import container, setup
from src.platform.database.orm_db_setting import Database, dispose_engines
from src.service.resale.driven_adapter.model.event_model import EventModel, TicketWaveModel


@dataclass
class ListingConfig:
    seller_user_id: str
    quantity: int
    price: Decimal


SEED_LISTINGS = [
    ListingConfig(seller_user_id='seller-1', quantity=4, price=Decimal('800.00')),
    ListingConfig(seller_user_id='seller-2', quantity=2, price=Decimal('950.00')),
]


async def _create_event() -> tuple:
    event_id, wave_id = uuid7(), uuid7()
    async with Database().session() as session:
        session.add(
            EventModel(
                id=event_id,
                name=os.getenv('SEED_EVENT_NAME', 'Rock Festival'),
                end_date=datetime.now(timezone.utc) + timedelta(days=30),
            )
        )
        await session.flush()
        session.add(
            TicketWaveModel(
                id=wave_id,
                event_id=event_id,
                name='General Admission',
                face_value=Decimal('1000.00'),
                currency='UYU',
            )
        )
        await session.commit()
    print(f'   ✅ Event {event_id} / wave {wave_id}')
    return event_id, wave_id


async def _seed() -> None:
    setup()
    try:
        event_id, wave_id = await _create_event()
        use_case = container.create_listing_use_case()
        for config in SEED_LISTINGS:
            listing = await use_case.execute(
                publisher_user_id=config.seller_user_id,
                event_id=event_id,
                ticket_wave_id=wave_id,
                quantity=config.quantity,
                price=config.price,
            )
            print(f'   ✅ Listing {listing.id}: {config.quantity} x {config.price}')
    finally:
        await dispose_engines()


def main() -> int:
    print('🌱 Seeding marketplace data...')
    try:
        anyio.run(_seed)
    except Exception as e:
        print(f'❌ Seed failed: {e}')
        return 1
    print('✅ Seed completed!')
    return 0


if __name__ == '__main__':
    sys.exit(main())
