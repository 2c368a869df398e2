#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Utility script to dump orders.

Prints every order with its status, total breakdown and items as JSON, one
order per line.

Usage:
  storefront-dump-orders --database_url=sqlite+aiosqlite:///storefront.db
"""

import asyncio
import json
import sys
from typing import TextIO

from absl import app as absl_app
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from storefront import config
from storefront import db
from storefront import pricing


async def write_orders(session: AsyncSession, out: TextIO) -> int:
  """Writes one JSON line per order, oldest first."""
  result = await session.execute(
      select(db.Order)
      .order_by(db.Order.created_at, db.Order.id)
      .options(selectinload(db.Order.items))
  )
  orders = result.scalars().all()
  for order in orders:
    totals = pricing.split_total(order.total)
    record = {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "subtotal": totals.subtotal,
        "shipping": totals.shipping,
        "tax": totals.tax,
        "total": order.total,
        "payment_session_id": order.payment_session_id,
        "payment_id": order.payment_id,
        "created_at": (
            order.created_at.isoformat() if order.created_at else None
        ),
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "price_at_purchase": item.price_at_purchase,
            }
            for item in order.items
        ],
    }
    out.write(json.dumps(record) + "\n")
  return len(orders)


async def dump_orders():
  await db.manager.init_db(config.get_settings().database_url)
  try:
    async with db.manager.session_factory() as session:
      await write_orders(session, sys.stdout)
  finally:
    await db.manager.close()


def main(argv):
  """Main entry point for the order dump script."""
  del argv
  asyncio.run(dump_orders())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
