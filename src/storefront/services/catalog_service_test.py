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

"""Tests for catalog browsing and reviews."""

from absl.testing import absltest
from storefront import cache
from storefront import db
from storefront import testing
from storefront.enums import CatalogSort
from storefront.exceptions import ResourceNotFoundError
from storefront.exceptions import UnauthenticatedError
from storefront.exceptions import ValidationError
from storefront.services.catalog_service import CatalogService
from storefront.services.review_service import ReviewService


class CatalogServiceTest(testing.DatabaseTestCase):

  def setUp(self) -> None:
    super().setUp()
    self.tshirts = self.seed_category("t-shirts", "T-Shirts")
    self.jeans = self.seed_category("jeans", "Jeans")
    self.seed_category("slim", "Slim", parent_id=self.jeans)
    self.tee = self.seed_product(
        slug="classic-tee",
        price=2499,
        category_id=self.tshirts,
        description="Soft cotton",
    )
    self.graphic = self.seed_product(
        slug="graphic-tee", price=2999, category_id=self.tshirts
    )
    self.denim = self.seed_product(
        slug="slim-jeans", price=5999, category_id=self.jeans
    )
    self.user_id = self.seed_user(name="Reviewer")

  def _catalog(self, method, *args, **kwargs):
    async def call():
      async with self.session() as session:
        service = CatalogService(session, self.page_cache)
        return await getattr(service, method)(*args, **kwargs)

    return testing.run_async(call())

  def _review(self, product_id, rating, body=None, user_id="default"):
    user_id = self.user_id if user_id == "default" else user_id

    async def call():
      async with self.session() as session:
        service = ReviewService(session, user_id, self.page_cache)
        return await service.submit_review(product_id, rating, body)

    return testing.run_async(call())

  def test_categories_are_top_level_with_counts(self):
    categories = self._catalog("categories")

    self.assertEqual(
        [(c.slug, c.product_count) for c in categories],
        [("jeans", 1), ("t-shirts", 2)],
    )

  def test_search_defaults_to_price_ascending(self):
    page = self._catalog("search")

    self.assertEqual(
        [p.slug for p in page.products],
        ["classic-tee", "graphic-tee", "slim-jeans"],
    )
    self.assertEqual(page.total, 3)
    self.assertEqual(page.total_pages, 1)

  def test_search_filters(self):
    by_text = self._catalog("search", query="COTTON")
    self.assertEqual([p.slug for p in by_text.products], ["classic-tee"])

    by_category = self._catalog(
        "search", category="t-shirts", sort=CatalogSort.PRICE_DESC
    )
    self.assertEqual(
        [p.slug for p in by_category.products], ["graphic-tee", "classic-tee"]
    )

    by_price = self._catalog("search", min_price=25, max_price=5000)
    self.assertEqual(
        [p.slug for p in by_price.products], ["graphic-tee", "slim-jeans"]
    )

  def test_search_newest_first(self):
    page = self._catalog("search", sort=CatalogSort.NEWEST)

    self.assertEqual(page.products[0].slug, "slim-jeans")

  def test_search_paginates_and_clamps_page(self):
    for i in range(12):
      self.seed_product(slug=f"extra-{i:02d}", price=100 + i)

    first = self._catalog("search", page=1)
    self.assertLen(first.products, 12)
    self.assertEqual(first.total, 15)
    self.assertEqual(first.total_pages, 2)

    beyond = self._catalog("search", page=9)
    self.assertEqual(beyond.page, 2)
    self.assertLen(beyond.products, 3)

  def test_detail_includes_reviews_and_related(self):
    self._review(self.tee, 4, "  Nice shirt ")

    detail = self._catalog("detail", "classic-tee")

    self.assertEqual(detail.product.category.slug, "t-shirts")
    self.assertEqual(detail.product.rating, 4.0)
    self.assertEqual(detail.product.review_count, 1)
    self.assertEqual(detail.reviews[0].body, "Nice shirt")
    self.assertEqual(detail.reviews[0].author_name, "Reviewer")
    self.assertEqual([p.slug for p in detail.related], ["graphic-tee"])

  def test_detail_unknown_slug(self):
    with self.assertRaises(ResourceNotFoundError):
      self._catalog("detail", "nope")

  def test_detail_is_cached_until_review(self):
    first = self._catalog("detail", "classic-tee")
    self.assertIs(self._catalog("detail", "classic-tee"), first)

    self._review(self.tee, 5)

    self.assertIsNone(self.page_cache.get(cache.product_page_key("classic-tee")))
    self.assertEqual(self._catalog("detail", "classic-tee").product.rating, 5.0)

  def test_review_is_replaced_on_resubmit(self):
    self._review(self.tee, 2, "meh")
    self._review(self.tee, 5, "   ")

    reviews = self.fetch_all(db.Review)
    self.assertLen(reviews, 1)
    self.assertEqual(reviews[0].rating, 5)
    self.assertIsNone(reviews[0].body)

  def test_review_validation(self):
    for rating in (0, 6):
      with self.assertRaises(ValidationError):
        self._review(self.tee, rating)
    with self.assertRaises(ResourceNotFoundError):
      self._review("missing", 3)
    with self.assertRaises(UnauthenticatedError):
      self._review(self.tee, 3, user_id=None)

  def test_latest(self):
    latest = self._catalog("latest")

    self.assertEqual(latest[0].slug, "slim-jeans")
    self.assertLen(latest, 3)


if __name__ == "__main__":
  absltest.main()
