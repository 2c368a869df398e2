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

"""Utility script to dump product stock levels.

This script reads the current stock of every product from the configured
database and outputs it to standard output in CSV format.

Usage:
  storefront-dump-inventory --database_url=sqlite+aiosqlite:///storefront.db
"""

import asyncio
import csv
import sys
from typing import TextIO

from absl import app as absl_app
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import config
from storefront import db


async def write_inventory(session: AsyncSession, out: TextIO) -> int:
  """Writes one CSV row per product. Returns the number of products."""
  result = await session.execute(select(db.Product).order_by(db.Product.slug))
  products = result.scalars().all()

  writer = csv.writer(out)
  writer.writerow(["product_id", "slug", "stock"])
  for product in products:
    writer.writerow([product.id, product.slug, product.stock])
  return len(products)


async def dump_inventory():
  """Queries the database and prints current stock levels."""
  await db.manager.init_db(config.get_settings().database_url)
  try:
    async with db.manager.session_factory() as session:
      await write_inventory(session, sys.stdout)
  finally:
    await db.manager.close()


def main(argv):
  """Main entry point for the inventory dump script."""
  del argv
  asyncio.run(dump_inventory())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
