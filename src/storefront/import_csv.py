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

"""Database initialization script for the storefront server.

This script imports users, categories and products from CSV files into the
configured database. Catalog, carts, reviews, addresses and orders are cleared
first; users are merged by ID so existing accounts are kept. Product prices
are given in decimal currency and stored in cents.

Usage:
  storefront-import --database_url=sqlite+aiosqlite:///storefront.db
  --data_dir=...
"""

import asyncio
import csv
import json
import logging
import os

from absl import app as absl_app
from absl import flags
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import config
from storefront import db
from storefront import pricing

FLAGS = flags.FLAGS
flags.DEFINE_string(
    "data_dir",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data"),
    "Directory containing users.csv, categories.csv and products.csv",
)

logger = logging.getLogger(__name__)


def _read_rows(path: str):
  if not os.path.exists(path):
    logger.info("Skipping missing file %s", path)
    return []
  with open(path, "r", encoding="utf-8") as f:
    return list(csv.DictReader(f))


async def load_catalog(session: AsyncSession, data_dir: str) -> int:
  """Replaces the catalog with the CSV data in `data_dir`.

  Returns:
    The number of products imported.
  """
  logger.info("Clearing existing carts, reviews, orders and addresses...")
  await session.execute(delete(db.CartItem))
  await session.execute(delete(db.Review))
  await session.execute(delete(db.OrderItem))
  await session.execute(delete(db.Order))
  await session.execute(delete(db.Address))

  logger.info("Clearing existing products and categories...")
  await session.execute(delete(db.Product))
  await session.execute(delete(db.Category))

  logger.info("Importing Users from CSV...")
  for row in _read_rows(os.path.join(data_dir, "users.csv")):
    await session.merge(
        db.User(
            id=row["id"],
            email=row["email"],
            name=row.get("name") or None,
            role=row.get("role") or "USER",
        )
    )

  logger.info("Importing Categories from CSV...")
  categories = [
      db.Category(
          id=row["id"],
          name=row["name"],
          slug=row["slug"],
          image=row.get("image") or None,
          parent_id=row.get("parent_id") or None,
      )
      for row in _read_rows(os.path.join(data_dir, "categories.csv"))
  ]
  session.add_all(categories)

  logger.info("Importing Products from CSV...")
  products = [
      db.Product(
          id=row["id"],
          name=row["name"],
          slug=row["slug"],
          description=row.get("description") or None,
          price=pricing.to_minor_units(row["price"]),
          images=json.loads(row["images"]) if row.get("images") else [],
          stock=int(row["stock"]),
          category_id=row.get("category_id") or None,
      )
      for row in _read_rows(os.path.join(data_dir, "products.csv"))
  ]
  session.add_all(products)

  await session.commit()
  return len(products)


async def import_csv_data() -> None:
  """Reads CSV files and populates the database."""
  await db.manager.init_db(config.get_settings().database_url)
  try:
    async with db.manager.session_factory() as session:
      count = await load_catalog(session, FLAGS.data_dir)
    logger.info("Database populated from CSVs (%d products).", count)
  finally:
    await db.manager.close()


def main(argv) -> None:
  """Main entry point for the CSV import script."""
  del argv
  logging.basicConfig(level=logging.INFO)
  asyncio.run(import_csv_data())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
