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

"""Shared fixtures for storefront tests.

`DatabaseTestCase` gives every test a fresh SQLite file. The engine does not
pool connections, so each `run_async` call (one event loop each) opens its
own.
"""

import asyncio
import datetime
import os
import shutil
import tempfile
from typing import Any, Coroutine, List, Optional, TypeVar

from absl.testing import absltest
from sqlalchemy import select
from sqlalchemy.pool import NullPool
from storefront import cache
from storefront import db
from storefront.config import Settings
from storefront.enums import OrderStatus

T = TypeVar("T")

AUTH_SECRET = "test-auth-secret"
WEBHOOK_SECRET = "whsec_test"


def run_async(coro: Coroutine[Any, Any, T]) -> T:
  return asyncio.run(coro)


def make_settings(**overrides: Any) -> Settings:
  values = {
      "database_url": "sqlite+aiosqlite://",
      "auth_secret": AUTH_SECRET,
      "payment_gateway": "fake",
      "stripe_webhook_secret": WEBHOOK_SECRET,
      "storefront_url": "http://shop.test",
  }
  values.update(overrides)
  return Settings(**values)


class DatabaseTestCase(absltest.TestCase):
  """Test case with an initialized storefront database."""

  def setUp(self) -> None:
    super().setUp()
    self.test_dir = tempfile.mkdtemp()
    self.db_url = (
        f"sqlite+aiosqlite:///{os.path.join(self.test_dir, 'storefront.db')}"
    )
    self.manager = db.DatabaseManager()
    run_async(self.manager.init_db(self.db_url, poolclass=NullPool))
    self.page_cache = cache.PageCache()
    self._clock = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)

  def tearDown(self) -> None:
    run_async(self.manager.close())
    shutil.rmtree(self.test_dir)
    super().tearDown()

  def session(self):
    """Opens a new session; use as `async with self.session() as s`."""
    return self.manager.session_factory()

  def _tick(self) -> datetime.datetime:
    self._clock += datetime.timedelta(seconds=1)
    return self._clock

  def _add(self, *rows: Any) -> None:
    async def add() -> None:
      async with self.session() as session:
        session.add_all(rows)
        await session.commit()

    run_async(add())

  # --- Seed helpers ---

  def seed_user(self, user_id: str = "user-1", name: str = "Test User") -> str:
    self._add(db.User(id=user_id, email=f"{user_id}@example.com", name=name))
    return user_id

  def seed_category(
      self,
      slug: str = "t-shirts",
      name: str = "T-Shirts",
      parent_id: Optional[str] = None,
  ) -> str:
    category = db.Category(
        id=f"cat-{slug}", name=name, slug=slug, parent_id=parent_id
    )
    self._add(category)
    return category.id

  def seed_product(
      self,
      slug: str = "classic-tee",
      price: int = 2499,
      stock: int = 10,
      name: Optional[str] = None,
      category_id: Optional[str] = None,
      description: Optional[str] = None,
      images: Optional[List[str]] = None,
  ) -> str:
    product = db.Product(
        id=f"prod-{slug}",
        name=name or slug.replace("-", " ").title(),
        slug=slug,
        description=description,
        price=price,
        images=images if images is not None else [f"/images/{slug}.jpg"],
        stock=stock,
        category_id=category_id,
        created_at=self._tick(),
    )
    self._add(product)
    return product.id

  def seed_address(
      self,
      user_id: str,
      is_default: bool = False,
      street: str = "1 Main St",
  ) -> str:
    address = db.Address(
        user_id=user_id,
        street=street,
        city="Springfield",
        postal_code="12345",
        country="US",
        is_default=is_default,
        created_at=self._tick(),
    )
    self._add(address)
    return address.id

  def seed_cart_item(self, user_id: str, product_id: str, quantity: int) -> str:
    item = db.CartItem(
        user_id=user_id,
        product_id=product_id,
        quantity=quantity,
        created_at=self._tick(),
    )
    self._add(item)
    return item.id

  def seed_order(
      self,
      user_id: str,
      total: int,
      status: OrderStatus = OrderStatus.PENDING,
      address_id: Optional[str] = None,
      payment_session_id: Optional[str] = None,
  ) -> str:
    order = db.Order(
        user_id=user_id,
        status=status.value,
        total=total,
        shipping_address_id=address_id,
        payment_session_id=payment_session_id,
        created_at=self._tick(),
    )
    self._add(order)
    return order.id

  # --- Read helpers ---

  def fetch_all(self, model: Any, *criteria: Any) -> List[Any]:
    async def fetch() -> List[Any]:
      async with self.session() as session:
        result = await session.execute(select(model).where(*criteria))
        return list(result.scalars().all())

    return run_async(fetch())

  def fetch(self, model: Any, row_id: str) -> Any:
    async def fetch_one() -> Any:
      async with self.session() as session:
        return await session.get(model, row_id)

    return run_async(fetch_one())
