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

"""Integration tests for the Storefront Server."""

import json
from typing import AsyncGenerator, Dict, Optional

from absl.testing import absltest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import cache
from storefront import db
from storefront import dependencies
from storefront import testing
from storefront.enums import OrderStatus
from storefront.gateway import fake_gateway
from storefront.gateway.fake_gateway import FakeGateway
from storefront.server import app


class IntegrationTest(testing.DatabaseTestCase):
  """Integration tests for the storefront application."""

  def setUp(self) -> None:
    """Sets up a temporary DB, a fake gateway and dependency overrides."""
    super().setUp()
    self.settings = testing.make_settings()
    self.gateway = FakeGateway(webhook_secret=testing.WEBHOOK_SECRET)
    cache.page_cache.invalidate(cache.HOME_PAGE, cache.PRODUCT_PAGE)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
      async with self.manager.session_factory() as session:
        yield session

    app.dependency_overrides[dependencies.get_db] = override_get_db
    app.dependency_overrides[dependencies.get_settings] = lambda: self.settings
    app.dependency_overrides[dependencies.get_payment_gateway] = (
        lambda: self.gateway
    )

    self.client = TestClient(app)

    self.category_id = self.seed_category("t-shirts", "T-Shirts")
    self.user_id = self.seed_user()
    self.product_id = self.seed_product(
        slug="classic-tee",
        name="Classic Cotton T-Shirt",
        price=2499,
        stock=10,
        category_id=self.category_id,
    )

  def tearDown(self) -> None:
    app.dependency_overrides.clear()
    super().tearDown()

  def _headers(self, user_id: Optional[str] = "default") -> Dict[str, str]:
    user_id = self.user_id if user_id == "default" else user_id
    if not user_id:
      return {}
    token = auth.issue_token(user_id, testing.AUTH_SECRET)
    return {"Authorization": f"Bearer {token}"}

  def _post_webhook(self, event, signature: Optional[str] = "sign"):
    payload = json.dumps(event).encode()
    headers = {"Content-Type": "application/json"}
    if signature == "sign":
      signature = self.gateway.sign(payload)
    if signature:
      headers["Stripe-Signature"] = signature
    return self.client.post(
        "/webhooks/payments", content=payload, headers=headers
    )

  def test_health(self):
    response = self.client.get("/")

    self.assertEqual(response.status_code, 200)
    self.assertEqual(response.json()["status"], "ok")

  def test_catalog_endpoints(self):
    categories = self.client.get("/categories").json()
    self.assertEqual(categories[0]["slug"], "t-shirts")
    self.assertEqual(categories[0]["product_count"], 1)

    page = self.client.get(
        "/products", params={"q": "cotton", "sort": "price_desc"}
    ).json()
    self.assertEqual(page["total"], 1)
    self.assertEqual(page["products"][0]["price"], 2499)

    detail = self.client.get("/products/classic-tee").json()
    self.assertEqual(detail["product"]["id"], self.product_id)

    latest = self.client.get("/products/latest").json()
    self.assertEqual(latest[0]["slug"], "classic-tee")

    lookup = self.client.get(
        "/products/lookup", params={"ids": f"{self.product_id},missing"}
    ).json()
    self.assertEqual([p["id"] for p in lookup], [self.product_id])

  def test_unknown_product_returns_uniform_error(self):
    response = self.client.get("/products/nope")

    self.assertEqual(response.status_code, 404)
    self.assertEqual(
        response.json(),
        {
            "ok": False,
            "error": "Product nope not found",
            "code": "RESOURCE_NOT_FOUND",
        },
    )

  def test_invalid_sort_is_validation_error(self):
    response = self.client.get("/products", params={"sort": "cheapest"})

    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "VALIDATION_ERROR")

  def test_submit_review(self):
    response = self.client.post(
        f"/products/{self.product_id}/reviews",
        json={"rating": 5, "body": "Great"},
        headers=self._headers(),
    )
    self.assertEqual(response.json(), {"ok": True, "error": None})

    response = self.client.post(
        f"/products/{self.product_id}/reviews",
        json={"rating": 9},
        headers=self._headers(),
    )
    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "INVALID_RATING")

  def test_cart_requires_sign_in(self):
    response = self.client.post(
        "/cart/items", json={"product_id": self.product_id, "quantity": 1}
    )

    self.assertEqual(response.status_code, 401)
    self.assertEqual(response.json()["code"], "UNAUTHENTICATED")
    self.assertEqual(self.client.get("/cart/count").json(), {"count": 0})

  def test_invalid_token_is_anonymous(self):
    response = self.client.get(
        "/cart", headers={"Authorization": "Bearer not-a-jwt"}
    )

    self.assertEqual(response.status_code, 401)

  def test_tokens_are_ignored_without_auth_secret(self):
    self.settings = testing.make_settings(auth_secret=None)

    response = self.client.get("/cart", headers=self._headers())

    self.assertEqual(response.status_code, 401)

  def test_cart_flow(self):
    headers = self._headers()

    response = self.client.post(
        "/cart/items",
        json={"product_id": self.product_id, "quantity": 25},
        headers=headers,
    )
    self.assertTrue(response.json()["ok"])

    cart = self.client.get("/cart", headers=headers).json()
    self.assertEqual(cart["count"], 10)
    item_id = cart["items"][0]["id"]

    response = self.client.patch(
        f"/cart/items/{item_id}", json={"quantity": 0}, headers=headers
    )
    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "INVALID_QUANTITY")

    self.client.patch(
        f"/cart/items/{item_id}", json={"quantity": 3}, headers=headers
    )
    self.assertEqual(
        self.client.get("/cart/count", headers=headers).json(), {"count": 3}
    )

    response = self.client.delete(f"/cart/items/{item_id}", headers=headers)
    self.assertTrue(response.json()["ok"])
    response = self.client.delete(f"/cart/items/{item_id}", headers=headers)
    self.assertEqual(response.status_code, 404)

  def test_merge_guest_cart(self):
    response = self.client.post(
        "/cart/merge",
        json={"items": [{"productId": self.product_id, "quantity": 30}]},
        headers=self._headers(),
    )

    self.assertTrue(response.json()["ok"])
    cart = self.client.get("/cart", headers=self._headers()).json()
    self.assertEqual(cart["items"][0]["quantity"], 10)

  def test_addresses(self):
    headers = self._headers()

    response = self.client.post(
        "/addresses", json={"street": "1 Main St"}, headers=headers
    )
    self.assertEqual(response.status_code, 400)
    self.assertEqual(
        response.json()["fields"], ["city", "postal_code", "country"]
    )

    response = self.client.post(
        "/addresses",
        json={
            "street": "1 Main St",
            "city": "Springfield",
            "postal_code": "12345",
            "country": "US",
            "is_default": True,
        },
        headers=headers,
    )
    address_id = response.json()["address_id"]

    addresses = self.client.get("/addresses", headers=headers).json()
    self.assertEqual(addresses[0]["id"], address_id)
    self.assertTrue(addresses[0]["is_default"])

  def test_embedded_payment_end_to_end(self):
    """Cart -> payment intent -> webhook -> confirmation."""
    headers = self._headers()
    address_id = self.seed_address(self.user_id)
    self.client.post(
        "/cart/items",
        json={"product_id": self.product_id, "quantity": 2},
        headers=headers,
    )

    response = self.client.post(
        "/checkout/payment-intent",
        json={"address_id": address_id},
        headers=headers,
    )
    self.assertEqual(response.status_code, 200)
    body = response.json()
    self.assertTrue(body["ok"])
    self.assertEqual(
        body["totals"],
        {"subtotal": 4998, "shipping": 1000, "tax": 600, "total": 6598},
    )
    order_id = body["order_id"]

    confirmation = self.client.get(f"/orders/{order_id}", headers=headers)
    self.assertEqual(confirmation.json()["state"], "updating")

    event = fake_gateway.build_event(
        "payment_intent.succeeded",
        {"id": "pi_e2e", "metadata": {"order_id": order_id}},
    )
    response = self._post_webhook(event)
    self.assertEqual(response.status_code, 200)
    self.assertTrue(response.json()["fulfilled"])

    # Redelivery is acknowledged without further effect.
    response = self._post_webhook(event)
    self.assertEqual(response.status_code, 200)
    self.assertFalse(response.json()["fulfilled"])

    view = self.client.get(f"/orders/{order_id}", headers=headers).json()
    self.assertEqual(view["state"], "confirmed")
    self.assertEqual(view["order"]["total"], 6598)
    self.assertEqual(view["order"]["tax"], 600)
    self.assertEqual(view["order"]["items"][0]["quantity"], 2)
    self.assertEqual(self.fetch(db.Product, self.product_id).stock, 8)
    self.assertEqual(
        self.client.get("/cart/count", headers=headers).json(), {"count": 0}
    )

  def test_hosted_payment_end_to_end(self):
    headers = self._headers()
    address_id = self.seed_address(self.user_id)
    self.seed_cart_item(self.user_id, self.product_id, 1)

    response = self.client.post(
        "/checkout/session", json={"address_id": address_id}, headers=headers
    )
    body = response.json()
    self.assertTrue(body["url"].startswith("https://checkout.fake/"))
    session_id = body["session_id"]

    event = fake_gateway.build_event(
        "checkout.session.completed",
        {
            "id": session_id,
            "client_reference_id": body["order_id"],
            "payment_intent": "pi_hosted",
        },
    )
    self.assertEqual(self._post_webhook(event).status_code, 200)

    view = self.client.get(
        f"/orders/by-session/{session_id}", headers=headers
    ).json()
    self.assertEqual(view["state"], "confirmed")
    self.assertEqual(view["order"]["id"], body["order_id"])
    order = self.fetch(db.Order, body["order_id"])
    self.assertEqual(order.status, OrderStatus.PAID.value)
    self.assertEqual(order.payment_id, "pi_hosted")

  def test_checkout_with_foreign_address(self):
    other_user = self.seed_user("user-2")
    foreign_address = self.seed_address(other_user)
    self.seed_cart_item(self.user_id, self.product_id, 1)

    response = self.client.post(
        "/checkout/payment-intent",
        json={"address_id": foreign_address},
        headers=self._headers(),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "INVALID_ADDRESS")
    self.assertEmpty(self.fetch_all(db.Order))

  def test_gateway_misconfiguration_surfaces_code(self):
    self.settings = testing.make_settings(
        payment_gateway="stripe", stripe_secret_key=None
    )
    del app.dependency_overrides[dependencies.get_payment_gateway]
    address_id = self.seed_address(self.user_id)
    self.seed_cart_item(self.user_id, self.product_id, 1)

    response = self.client.post(
        "/checkout/payment-intent",
        json={"address_id": address_id},
        headers=self._headers(),
    )

    self.assertEqual(response.status_code, 502)
    self.assertEqual(response.json()["code"], "GATEWAY_MISCONFIGURED")
    self.assertEmpty(self.fetch_all(db.Order))

  def test_webhook_rejects_bad_signature(self):
    event = fake_gateway.build_event("payment_intent.succeeded", {"id": "pi"})

    missing = self._post_webhook(event, signature=None)
    self.assertEqual(missing.status_code, 400)
    self.assertEqual(missing.json()["code"], "INVALID_SIGNATURE")

    forged = self._post_webhook(event, signature="t=1,v1=abc")
    self.assertEqual(forged.status_code, 400)

    non_ascii = self.client.post(
        "/webhooks/payments",
        content=json.dumps(event).encode(),
        headers={"Stripe-Signature": "t=1,v1=\xe9abc".encode("latin-1")},
    )
    self.assertEqual(non_ascii.status_code, 400)
    self.assertEqual(non_ascii.json()["code"], "INVALID_SIGNATURE")

  def test_orders_require_sign_in(self):
    response = self.client.get("/orders/anything")

    self.assertEqual(response.status_code, 401)


if __name__ == "__main__":
  absltest.main()
