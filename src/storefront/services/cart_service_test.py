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

"""Tests for the cart service."""

from absl.testing import absltest
from storefront import cache
from storefront import db
from storefront import testing
from storefront.exceptions import InvalidQuantityError
from storefront.exceptions import OutOfStockError
from storefront.exceptions import ResourceNotFoundError
from storefront.exceptions import UnauthenticatedError
from storefront.models import GuestCartItem
from storefront.services.cart_service import CartService


class CartServiceTest(testing.DatabaseTestCase):

  def setUp(self) -> None:
    super().setUp()
    self.user_id = self.seed_user()
    self.product_id = self.seed_product(slug="classic-tee", stock=5)

  def _call(self, method: str, *args, user_id="default"):
    user_id = self.user_id if user_id == "default" else user_id

    async def call():
      async with self.session() as session:
        service = CartService(session, user_id, page_cache=self.page_cache)
        return await getattr(service, method)(*args)

    return testing.run_async(call())

  def _cart_rows(self):
    return self.fetch_all(db.CartItem, db.CartItem.user_id == self.user_id)

  def test_add_inserts_row(self):
    result = self._call("add", self.product_id, 2)

    self.assertTrue(result.ok)
    rows = self._cart_rows()
    self.assertLen(rows, 1)
    self.assertEqual(rows[0].quantity, 2)

  def test_add_clamps_to_stock(self):
    self._call("add", self.product_id, 99)

    self.assertEqual(self._cart_rows()[0].quantity, 5)

  def test_add_increments_existing_row_up_to_stock(self):
    self._call("add", self.product_id, 2)
    self._call("add", self.product_id, 2)
    self.assertEqual(self._cart_rows()[0].quantity, 4)

    self._call("add", self.product_id, 3)
    rows = self._cart_rows()
    self.assertLen(rows, 1)
    self.assertEqual(rows[0].quantity, 5)

  def test_add_requires_identity(self):
    with self.assertRaises(UnauthenticatedError):
      self._call("add", self.product_id, 1, user_id=None)

  def test_add_rejects_quantity_below_one(self):
    with self.assertRaises(InvalidQuantityError):
      self._call("add", self.product_id, 0)
    self.assertEmpty(self._cart_rows())

  def test_add_unknown_product(self):
    with self.assertRaises(ResourceNotFoundError):
      self._call("add", "missing", 1)

  def test_add_out_of_stock_product(self):
    sold_out = self.seed_product(slug="sold-out", stock=0)

    with self.assertRaises(OutOfStockError):
      self._call("add", sold_out, 1)

  def test_add_invalidates_cached_pages(self):
    self.page_cache.set(cache.product_page_key("classic-tee"), "page")
    self.page_cache.set(f"{cache.HOME_PAGE}latest", "home")
    self.page_cache.set(cache.product_page_key("other"), "other")

    self._call("add", self.product_id, 1)

    self.assertIsNone(self.page_cache.get(cache.product_page_key("classic-tee")))
    self.assertIsNone(self.page_cache.get(f"{cache.HOME_PAGE}latest"))
    self.assertEqual(self.page_cache.get(cache.product_page_key("other")), "other")

  def test_list_returns_lines_and_subtotal(self):
    other = self.seed_product(slug="jeans", price=5999, stock=3)
    self.seed_cart_item(self.user_id, self.product_id, 2)
    self.seed_cart_item(self.user_id, other, 1)

    cart = self._call("list")

    self.assertEqual(
        [line.product.slug for line in cart.items], ["classic-tee", "jeans"]
    )
    self.assertEqual(cart.count, 3)
    self.assertEqual(cart.subtotal, 2499 * 2 + 5999)
    self.assertEqual(cart.items[0].line_total, 4998)

  def test_count(self):
    self.seed_cart_item(self.user_id, self.product_id, 3)

    self.assertEqual(self._call("count"), 3)
    self.assertEqual(self._call("count", user_id=None), 0)

  def test_update_quantity_clamps_to_stock(self):
    item_id = self.seed_cart_item(self.user_id, self.product_id, 1)

    self._call("update_quantity", item_id, 50)

    self.assertEqual(self._cart_rows()[0].quantity, 5)

  def test_update_quantity_rejects_zero_and_keeps_row(self):
    item_id = self.seed_cart_item(self.user_id, self.product_id, 2)

    for quantity in (0, -3):
      with self.assertRaises(InvalidQuantityError):
        self._call("update_quantity", item_id, quantity)

    self.assertEqual(self._cart_rows()[0].quantity, 2)

  def test_update_quantity_of_foreign_item(self):
    other_user = self.seed_user("user-2")
    item_id = self.seed_cart_item(other_user, self.product_id, 1)

    with self.assertRaises(ResourceNotFoundError):
      self._call("update_quantity", item_id, 2)

  def test_remove(self):
    item_id = self.seed_cart_item(self.user_id, self.product_id, 1)

    self.assertTrue(self._call("remove", item_id).ok)
    self.assertEmpty(self._cart_rows())

  def test_remove_foreign_item(self):
    other_user = self.seed_user("user-2")
    item_id = self.seed_cart_item(other_user, self.product_id, 1)

    with self.assertRaises(ResourceNotFoundError):
      self._call("remove", item_id)
    self.assertLen(self.fetch_all(db.CartItem), 1)

  def test_get_products_by_ids_keeps_requested_order(self):
    other = self.seed_product(slug="jeans")

    products = self._call(
        "get_products_by_ids", [other, "missing", self.product_id], user_id=None
    )

    self.assertEqual([p.id for p in products], [other, self.product_id])

  def test_merge_guest(self):
    jeans = self.seed_product(slug="jeans", stock=2)
    sold_out = self.seed_product(slug="sold-out", stock=0)
    self.seed_cart_item(self.user_id, self.product_id, 4)

    result = self._call(
        "merge_guest",
        [
            GuestCartItem(product_id=self.product_id, quantity=3),
            GuestCartItem(product_id=jeans, quantity=10),
            GuestCartItem(product_id=sold_out, quantity=1),
            GuestCartItem(product_id="missing", quantity=1),
            GuestCartItem(product_id=jeans, quantity=0),
        ],
    )

    self.assertTrue(result.ok)
    quantities = {r.product_id: r.quantity for r in self._cart_rows()}
    self.assertEqual(quantities, {self.product_id: 5, jeans: 2})


if __name__ == "__main__":
  absltest.main()
