#!/usr/bin/env python3
"""
Backfill ``first_message_at`` on threads created before it was tracked.

Safe to run multiple times; threads that already have the field are skipped.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from phonedesk.db.session import AsyncSessionLocal
from phonedesk.maintenance.backfill import backfill_first_message_at


async def main():
    async with AsyncSessionLocal() as session:
        result = await backfill_first_message_at(session)
    print(f"Updated {result['updated']} of {result['total']} threads")


if __name__ == "__main__":
    asyncio.run(main())
