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

"""Database management and persistence layer for the storefront server.

This module provides the schema definitions, database session management, and
asynchronous data access helpers used by the server. It utilizes SQLAlchemy
with SQLite (via aiosqlite). Catalog, carts, addresses and orders share one
database so that order fulfillment can commit stock, order items, cart rows
and the order status in a single transaction.

Key features include:
- `DatabaseManager`: Handles asynchronous engine initialization and session
  factory setup.
- WAL Mode: Automatically enables SQLite Write-Ahead Logging so the webhook
  receiver and storefront requests can work concurrently.
- Declarative Models: Defines tables for users, categories, products, reviews,
  cart items, addresses, orders and order items. Money columns hold integer
  cents.
- Data Access Helpers: A suite of asynchronous functions for queries and the
  atomic conditional updates (cart upsert, stock decrement, order status
  transition) the services depend on.
"""

import datetime
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
import uuid

from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import delete
from sqlalchemy import ForeignKey
from sqlalchemy import func
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import or_
from sqlalchemy import select
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy import Text
from sqlalchemy import UniqueConstraint
from sqlalchemy import update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.orm import selectinload
from storefront.enums import CatalogSort
from storefront.enums import OrderStatus

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseManager:
  """Manages the database engine and sessions without using global variables."""

  def __init__(self) -> None:
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[async_sessionmaker] = None

  async def init_db(self, url: str, **engine_kwargs: Any) -> None:
    """Initializes the database engine and creates tables."""
    self.engine = create_async_engine(url, echo=False, **engine_kwargs)

    if url.startswith("sqlite"):
      async with self.engine.connect() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = async_sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(Base.metadata.create_all)

  async def close(self) -> None:
    """Closes the database engine."""
    if self.engine:
      await self.engine.dispose()


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


def _new_id() -> str:
  return str(uuid.uuid4())


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class User(Base):
  __tablename__ = "users"

  id = Column(String, primary_key=True, default=_new_id)
  email = Column(String, unique=True, index=True)
  name = Column(String, nullable=True)
  role = Column(String, default="USER")
  created_at = Column(DateTime, default=_utcnow)


class Category(Base):
  __tablename__ = "categories"

  id = Column(String, primary_key=True, default=_new_id)
  name = Column(String)
  slug = Column(String, unique=True, index=True)
  image = Column(String, nullable=True)
  parent_id = Column(String, ForeignKey("categories.id"), nullable=True)

  products = relationship("Product", back_populates="category")


class Product(Base):
  __tablename__ = "products"

  id = Column(String, primary_key=True, default=_new_id)
  name = Column(String)
  slug = Column(String, unique=True, index=True)
  description = Column(Text, nullable=True)
  price = Column(Integer)  # Price in cents
  images = Column(JSON, default=list)
  stock = Column(Integer, default=0)
  category_id = Column(String, ForeignKey("categories.id"), nullable=True)
  created_at = Column(DateTime, default=_utcnow)

  category = relationship("Category", back_populates="products")


class Review(Base):
  __tablename__ = "reviews"
  __table_args__ = (UniqueConstraint("user_id", "product_id"),)

  id = Column(String, primary_key=True, default=_new_id)
  user_id = Column(String, ForeignKey("users.id"))
  product_id = Column(String, ForeignKey("products.id"))
  rating = Column(Integer)
  body = Column(Text, nullable=True)
  created_at = Column(DateTime, default=_utcnow)

  user = relationship("User")


class CartItem(Base):
  __tablename__ = "cart_items"
  __table_args__ = (UniqueConstraint("user_id", "product_id"),)

  id = Column(String, primary_key=True, default=_new_id)
  user_id = Column(String, ForeignKey("users.id"), index=True)
  product_id = Column(String, ForeignKey("products.id"))
  quantity = Column(Integer)
  created_at = Column(DateTime, default=_utcnow)

  product = relationship("Product")


class Address(Base):
  __tablename__ = "addresses"

  id = Column(String, primary_key=True, default=_new_id)
  user_id = Column(String, ForeignKey("users.id"), index=True)
  label = Column(String, nullable=True)
  street = Column(String)
  city = Column(String)
  state = Column(String, nullable=True)
  postal_code = Column(String)
  country = Column(String)
  is_default = Column(Boolean, default=False)
  created_at = Column(DateTime, default=_utcnow)


class Order(Base):
  __tablename__ = "orders"

  id = Column(String, primary_key=True, default=_new_id)
  user_id = Column(String, ForeignKey("users.id"), index=True)
  status = Column(String, default=OrderStatus.PENDING.value)
  total = Column(Integer)  # In cents
  shipping_address_id = Column(
      String, ForeignKey("addresses.id"), nullable=True
  )
  payment_session_id = Column(String, nullable=True, index=True)
  payment_id = Column(String, nullable=True)
  created_at = Column(DateTime, default=_utcnow)

  items = relationship(
      "OrderItem", back_populates="order", cascade="all, delete-orphan"
  )
  shipping_address = relationship("Address")


class OrderItem(Base):
  __tablename__ = "order_items"

  id = Column(String, primary_key=True, default=_new_id)
  order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"))
  product_id = Column(String, ForeignKey("products.id"))
  quantity = Column(Integer)
  price_at_purchase = Column(Integer)  # In cents, snapshot at fulfillment

  order = relationship("Order", back_populates="items")
  product = relationship("Product")


# --- Data Access Helpers ---


async def get_product(
    session: AsyncSession, product_id: str
) -> Optional[Product]:
  """Retrieves a product by ID."""
  return await session.get(Product, product_id)


async def get_product_by_slug(
    session: AsyncSession, slug: str
) -> Optional[Product]:
  """Retrieves a product and its category by slug."""
  result = await session.execute(
      select(Product)
      .where(Product.slug == slug)
      .options(selectinload(Product.category))
  )
  return result.scalar_one_or_none()


async def get_products_by_ids(
    session: AsyncSession, product_ids: Sequence[str]
) -> List[Product]:
  """Retrieves multiple products by their IDs in a single query."""
  if not product_ids:
    return []
  result = await session.execute(
      select(Product)
      .where(Product.id.in_(list(product_ids)))
      .options(selectinload(Product.category))
  )
  return list(result.scalars().all())


async def search_products(
    session: AsyncSession,
    query: Optional[str],
    category_slug: Optional[str],
    min_price: int,
    max_price: int,
    sort: CatalogSort,
    offset: int,
    limit: int,
) -> Tuple[List[Product], int]:
  """Searches the catalog.

  Args:
    session: The database session to use.
    query: Case-insensitive text matched against name and description.
    category_slug: Restricts results to one category when set.
    min_price: Lower price bound in cents (inclusive).
    max_price: Upper price bound in cents (inclusive).
    sort: Result ordering.
    offset: Number of matching rows to skip.
    limit: Maximum number of rows to return.

  Returns:
    The requested page of products and the total number of matches.
  """
  stmt = select(Product).where(
      Product.price >= min_price, Product.price <= max_price
  )
  if query:
    pattern = f"%{query.lower()}%"
    stmt = stmt.where(
        or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.description).like(pattern),
        )
    )
  if category_slug:
    stmt = stmt.join(Category, Product.category_id == Category.id).where(
        Category.slug == category_slug
    )

  total = await session.scalar(
      select(func.count()).select_from(stmt.subquery())
  )

  if sort == CatalogSort.PRICE_DESC:
    ordering = (Product.price.desc(), Product.id)
  elif sort == CatalogSort.NEWEST:
    ordering = (Product.created_at.desc(), Product.id)
  else:
    ordering = (Product.price.asc(), Product.id)

  result = await session.execute(
      stmt.order_by(*ordering)
      .offset(offset)
      .limit(limit)
      .options(selectinload(Product.category))
  )
  return list(result.scalars().all()), total or 0


async def get_latest_products(
    session: AsyncSession, limit: int
) -> List[Product]:
  """Retrieves the most recently added products."""
  result = await session.execute(
      select(Product)
      .order_by(Product.created_at.desc(), Product.id)
      .limit(limit)
      .options(selectinload(Product.category))
  )
  return list(result.scalars().all())


async def get_related_products(
    session: AsyncSession, product: Product, limit: int
) -> List[Product]:
  """Retrieves other products from the same category."""
  if not product.category_id:
    return []
  result = await session.execute(
      select(Product)
      .where(
          Product.category_id == product.category_id,
          Product.id != product.id,
      )
      .order_by(Product.id)
      .limit(limit)
      .options(selectinload(Product.category))
  )
  return list(result.scalars().all())


async def get_top_categories(
    session: AsyncSession,
) -> List[Tuple[Category, int]]:
  """Retrieves top-level categories with their product counts."""
  result = await session.execute(
      select(Category, func.count(Product.id))
      .outerjoin(Product, Product.category_id == Category.id)
      .where(Category.parent_id.is_(None))
      .group_by(Category.id)
      .order_by(Category.name)
  )
  return [(category, count) for category, count in result.all()]


async def get_rating_summaries(
    session: AsyncSession, product_ids: Sequence[str]
) -> Dict[str, Tuple[float, int]]:
  """Returns (average rating, review count) keyed by product ID."""
  if not product_ids:
    return {}
  result = await session.execute(
      select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
      .where(Review.product_id.in_(list(product_ids)))
      .group_by(Review.product_id)
  )
  return {
      product_id: (float(average), count)
      for product_id, average, count in result.all()
  }


async def get_reviews_for_product(
    session: AsyncSession, product_id: str
) -> List[Review]:
  """Retrieves a product's reviews, newest first, with their authors."""
  result = await session.execute(
      select(Review)
      .where(Review.product_id == product_id)
      .order_by(Review.created_at.desc(), Review.id)
      .options(selectinload(Review.user))
  )
  return list(result.scalars().all())


async def upsert_review(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    rating: int,
    body: Optional[str],
) -> None:
  """Creates or replaces the user's review of a product."""
  stmt = sqlite_insert(Review).values(
      id=_new_id(),
      user_id=user_id,
      product_id=product_id,
      rating=rating,
      body=body,
      created_at=_utcnow(),
  )
  stmt = stmt.on_conflict_do_update(
      index_elements=["user_id", "product_id"],
      set_={"rating": stmt.excluded.rating, "body": stmt.excluded.body},
  )
  await session.execute(stmt)


async def get_cart_items(
    session: AsyncSession, user_id: str
) -> List[CartItem]:
  """Retrieves a user's cart items with their products."""
  result = await session.execute(
      select(CartItem)
      .where(CartItem.user_id == user_id)
      .order_by(CartItem.created_at, CartItem.id)
      .options(selectinload(CartItem.product).selectinload(Product.category))
  )
  return list(result.scalars().all())


async def count_cart_units(session: AsyncSession, user_id: str) -> int:
  """Returns the total quantity across a user's cart items."""
  total = await session.scalar(
      select(func.coalesce(func.sum(CartItem.quantity), 0)).where(
          CartItem.user_id == user_id
      )
  )
  return int(total or 0)


async def get_cart_item(
    session: AsyncSession, user_id: str, item_id: str
) -> Optional[CartItem]:
  """Retrieves a cart item only if it belongs to the user."""
  result = await session.execute(
      select(CartItem)
      .where(CartItem.id == item_id, CartItem.user_id == user_id)
      .options(selectinload(CartItem.product))
  )
  return result.scalar_one_or_none()


async def upsert_cart_item(
    session: AsyncSession,
    user_id: str,
    product_id: str,
    quantity: int,
    ceiling: int,
) -> None:
  """Inserts a cart row or increments an existing one in a single statement.

  The resulting quantity never exceeds `ceiling` (the product's stock as seen
  by the caller).
  """
  stmt = sqlite_insert(CartItem).values(
      id=_new_id(),
      user_id=user_id,
      product_id=product_id,
      quantity=min(quantity, ceiling),
      created_at=_utcnow(),
  )
  stmt = stmt.on_conflict_do_update(
      index_elements=["user_id", "product_id"],
      set_={
          "quantity": func.min(
              CartItem.quantity + stmt.excluded.quantity, ceiling
          )
      },
  )
  await session.execute(stmt)


async def delete_cart_item(
    session: AsyncSession, user_id: str, item_id: str
) -> int:
  """Deletes a cart item owned by the user. Returns the affected row count."""
  result = await session.execute(
      delete(CartItem).where(
          CartItem.id == item_id, CartItem.user_id == user_id
      )
  )
  return result.rowcount


async def clear_cart(
    session: AsyncSession, user_id: str, item_ids: Sequence[str]
) -> None:
  """Deletes the given cart rows of a user.

  Rows added after `item_ids` were read stay in the cart.
  """
  if not item_ids:
    return
  await session.execute(
      delete(CartItem).where(
          CartItem.user_id == user_id, CartItem.id.in_(list(item_ids))
      )
  )


async def get_addresses(session: AsyncSession, user_id: str) -> List[Address]:
  """Retrieves a user's addresses, default first, then newest first."""
  result = await session.execute(
      select(Address)
      .where(Address.user_id == user_id)
      .order_by(Address.is_default.desc(), Address.created_at.desc())
  )
  return list(result.scalars().all())


async def get_address(
    session: AsyncSession, user_id: str, address_id: str
) -> Optional[Address]:
  """Retrieves an address only if it belongs to the user."""
  result = await session.execute(
      select(Address).where(
          Address.id == address_id, Address.user_id == user_id
      )
  )
  return result.scalar_one_or_none()


async def unset_default_addresses(session: AsyncSession, user_id: str) -> None:
  """Clears the default flag on all of a user's addresses."""
  await session.execute(
      update(Address)
      .where(Address.user_id == user_id, Address.is_default.is_(True))
      .values(is_default=False)
  )


async def get_order(session: AsyncSession, order_id: str) -> Optional[Order]:
  """Retrieves an order by ID regardless of owner."""
  return await session.get(Order, order_id)


async def find_order_for_user(
    session: AsyncSession,
    user_id: str,
    order_id: Optional[str] = None,
    payment_session_id: Optional[str] = None,
) -> Optional[Order]:
  """Retrieves a user's order by ID or gateway session ID.

  Items, their products and the shipping address are loaded eagerly.
  """
  stmt = select(Order).where(Order.user_id == user_id)
  if order_id:
    stmt = stmt.where(Order.id == order_id)
  elif payment_session_id:
    stmt = stmt.where(Order.payment_session_id == payment_session_id)
  else:
    return None
  result = await session.execute(
      stmt.options(
          selectinload(Order.items).selectinload(OrderItem.product),
          selectinload(Order.shipping_address),
      )
  )
  return result.scalars().first()


async def delete_order(session: AsyncSession, order_id: str) -> None:
  """Deletes an order and its items."""
  await session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
  await session.execute(delete(Order).where(Order.id == order_id))


async def mark_order_paid(
    session: AsyncSession, order_id: str, payment_id: Optional[str]
) -> bool:
  """Atomically moves an order from PENDING to PAID.

  Returns:
    True if this call performed the transition, False if the order was no
    longer pending.
  """
  values: Dict[str, Any] = {"status": OrderStatus.PAID.value}
  if payment_id:
    values["payment_id"] = payment_id
  result = await session.execute(
      update(Order)
      .where(
          Order.id == order_id, Order.status == OrderStatus.PENDING.value
      )
      .values(**values)
      .execution_options(synchronize_session=False)
  )
  return result.rowcount > 0


async def reserve_stock(
    session: AsyncSession, product_id: str, quantity: int
) -> bool:
  """Atomically decrements stock if sufficient stock exists."""
  stmt = (
      update(Product)
      .where(Product.id == product_id)
      .where(Product.stock >= quantity)
      .values(stock=Product.stock - quantity)
      .execution_options(synchronize_session=False)
  )
  result = await session.execute(stmt)
  return result.rowcount > 0
