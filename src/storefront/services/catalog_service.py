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

"""Read-only catalog browsing.

Category listings, the latest products and product detail pages are cached in
the process-wide page cache. Searches are always served from the database.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import cache
from storefront import db
from storefront.enums import CatalogSort
from storefront.exceptions import ResourceNotFoundError
from storefront.models import CatalogPage
from storefront.models import CategoryRef
from storefront.models import CategorySummary
from storefront.models import ProductDetail
from storefront.models import ProductSummary
from storefront.models import ReviewView

logger = logging.getLogger(__name__)

PAGE_SIZE = 12
LATEST_LIMIT = 8
RELATED_LIMIT = 8
MAX_PRICE_FILTER = 1000  # Whole currency units

CATEGORIES_KEY = f"{cache.HOME_PAGE}categories"
LATEST_KEY = f"{cache.HOME_PAGE}latest"


def to_summary(
    product: db.Product,
    ratings: Optional[Dict[str, Tuple[float, int]]] = None,
) -> ProductSummary:
  """Converts a product row into its API representation."""
  rating, review_count = (ratings or {}).get(product.id, (None, 0))
  category = None
  if product.category is not None:
    category = CategoryRef.model_validate(product.category)
  return ProductSummary(
      id=product.id,
      name=product.name,
      slug=product.slug,
      description=product.description,
      price=product.price,
      images=list(product.images or []),
      stock=product.stock,
      category=category,
      rating=round(rating, 2) if rating is not None else None,
      review_count=review_count,
  )


def _clamp_price(value: Optional[int], default: int) -> int:
  if value is None:
    return default
  return max(0, min(MAX_PRICE_FILTER, value))


class CatalogService:
  """Serves catalog pages."""

  def __init__(
      self, session: AsyncSession, page_cache: cache.PageCache = cache.page_cache
  ):
    self.session = session
    self.cache = page_cache

  async def _summaries(
      self, products: Sequence[db.Product]
  ) -> List[ProductSummary]:
    ratings = await db.get_rating_summaries(
        self.session, [p.id for p in products]
    )
    return [to_summary(p, ratings) for p in products]

  async def categories(self) -> List[CategorySummary]:
    """Returns top-level categories with their product counts."""
    cached = self.cache.get(CATEGORIES_KEY)
    if cached is not None:
      return cached
    rows = await db.get_top_categories(self.session)
    result = [
        CategorySummary(
            id=category.id,
            name=category.name,
            slug=category.slug,
            image=category.image,
            product_count=count,
        )
        for category, count in rows
    ]
    self.cache.set(CATEGORIES_KEY, result)
    return result

  async def latest(self) -> List[ProductSummary]:
    """Returns the newest products."""
    cached = self.cache.get(LATEST_KEY)
    if cached is not None:
      return cached
    products = await db.get_latest_products(self.session, LATEST_LIMIT)
    result = await self._summaries(products)
    self.cache.set(LATEST_KEY, result)
    return result

  async def search(
      self,
      query: Optional[str] = None,
      category: Optional[str] = None,
      sort: CatalogSort = CatalogSort.PRICE_ASC,
      min_price: Optional[int] = None,
      max_price: Optional[int] = None,
      page: int = 1,
  ) -> CatalogPage:
    """Searches the catalog.

    Price bounds are whole currency units clamped to 0..1000. The page number
    is clamped into the range of available pages.
    """
    low = _clamp_price(min_price, 0) * 100
    high = _clamp_price(max_price, MAX_PRICE_FILTER) * 100
    query = (query or "").strip() or None

    page = max(1, page)
    products, total = await db.search_products(
        self.session,
        query,
        category,
        low,
        high,
        sort,
        (page - 1) * PAGE_SIZE,
        PAGE_SIZE,
    )
    total_pages = max(1, math.ceil(total / PAGE_SIZE))
    if page > total_pages:
      page = total_pages
      products, total = await db.search_products(
          self.session,
          query,
          category,
          low,
          high,
          sort,
          (page - 1) * PAGE_SIZE,
          PAGE_SIZE,
      )
    return CatalogPage(
        products=await self._summaries(products),
        total=total,
        page=page,
        total_pages=total_pages,
        page_size=PAGE_SIZE,
    )

  async def detail(self, slug: str) -> ProductDetail:
    """Returns a product page: product, reviews and related products."""
    key = cache.product_page_key(slug)
    cached = self.cache.get(key)
    if cached is not None:
      return cached

    product = await db.get_product_by_slug(self.session, slug)
    if not product:
      raise ResourceNotFoundError(f"Product {slug} not found")

    reviews = await db.get_reviews_for_product(self.session, product.id)
    related = await db.get_related_products(
        self.session, product, RELATED_LIMIT
    )
    ratings = await db.get_rating_summaries(
        self.session, [product.id] + [p.id for p in related]
    )
    result = ProductDetail(
        product=to_summary(product, ratings),
        reviews=[
            ReviewView(
                id=review.id,
                rating=review.rating,
                body=review.body,
                author_name=review.user.name if review.user else None,
                created_at=review.created_at,
            )
            for review in reviews
        ],
        related=[to_summary(p, ratings) for p in related],
    )
    self.cache.set(key, result)
    return result
