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

"""Product reviews. One review per user and product; resubmitting replaces."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import cache
from storefront import db
from storefront.exceptions import ResourceNotFoundError
from storefront.exceptions import ValidationError
from storefront.models import ActionResult

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:

  def __init__(
      self,
      session: AsyncSession,
      user_id: Optional[str],
      page_cache: cache.PageCache = cache.page_cache,
  ):
    self.session = session
    self.user_id = user_id
    self.cache = page_cache

  async def submit_review(
      self, product_id: str, rating: int, body: Optional[str] = None
  ) -> ActionResult:
    user_id = auth.require_user(self.user_id)
    if not MIN_RATING <= rating <= MAX_RATING:
      raise ValidationError(
          f"Rating must be between {MIN_RATING} and {MAX_RATING}.",
          fields=["rating"],
          code="INVALID_RATING",
      )

    product = await db.get_product(self.session, product_id)
    if not product:
      raise ResourceNotFoundError("Product not found.")

    await db.upsert_review(
        self.session, user_id, product.id, rating, (body or "").strip() or None
    )
    await self.session.commit()
    logger.info("User %s reviewed product %s", user_id, product.id)
    self.cache.invalidate(cache.product_page_key(product.slug), cache.HOME_PAGE)
    return ActionResult()
