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

"""Request and response models for the storefront API.

All money fields are integer cents. Responses to mutating requests extend
`ActionResult` so that clients always receive an `ok` flag; failures are
rendered with the same shape by the server's exception handlers.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from storefront import pricing
from storefront.enums import ConfirmationState


class ActionResult(BaseModel):
  """Uniform result of a mutating operation."""

  ok: bool = True
  error: Optional[str] = None


# --- Catalog ---


class CategoryRef(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  id: str
  name: str
  slug: str


class CategorySummary(CategoryRef):
  image: Optional[str] = None
  product_count: int = 0


class ProductSummary(BaseModel):
  """Product as shown on cards, cart lines and lookups."""

  id: str
  name: str
  slug: str
  description: Optional[str] = None
  price: int
  images: List[str] = []
  stock: int
  category: Optional[CategoryRef] = None
  rating: Optional[float] = None
  review_count: int = 0


class ReviewView(BaseModel):
  id: str
  rating: int
  body: Optional[str] = None
  author_name: Optional[str] = None
  created_at: Optional[datetime.datetime] = None


class ProductDetail(BaseModel):
  product: ProductSummary
  reviews: List[ReviewView] = []
  related: List[ProductSummary] = []


class CatalogPage(BaseModel):
  products: List[ProductSummary]
  total: int
  page: int
  total_pages: int
  page_size: int


class ReviewRequest(BaseModel):
  rating: int
  body: Optional[str] = None


# --- Cart ---


class CartItemAddRequest(BaseModel):
  product_id: str
  quantity: int = 1


class CartItemUpdateRequest(BaseModel):
  quantity: int


class GuestCartItem(BaseModel):
  """Guest cart entry as serialized by the client ({productId, quantity})."""

  model_config = ConfigDict(populate_by_name=True)

  product_id: str = Field(alias="productId")
  quantity: int


class CartMergeRequest(BaseModel):
  items: List[GuestCartItem] = []


class CartLine(BaseModel):
  id: str
  product: ProductSummary
  quantity: int
  line_total: int


class CartView(BaseModel):
  items: List[CartLine]
  count: int
  subtotal: int


class CartCount(BaseModel):
  count: int


# --- Addresses ---


class AddressCreateRequest(BaseModel):
  """Shipping address input.

  Required fields default to empty strings so that missing values are
  reported together by the address service.
  """

  street: str = ""
  city: str = ""
  state: Optional[str] = None
  postal_code: str = ""
  country: str = ""
  label: Optional[str] = None
  is_default: bool = False


class AddressView(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  id: str
  label: Optional[str] = None
  street: str
  city: str
  state: Optional[str] = None
  postal_code: str
  country: str
  is_default: bool


class AddressCreated(ActionResult):
  address_id: str


# --- Checkout ---


class CheckoutRequest(BaseModel):
  address_id: str = ""


class Totals(BaseModel):
  subtotal: int
  shipping: int
  tax: int
  total: int

  @classmethod
  def from_totals(cls, totals: pricing.OrderTotals) -> "Totals":
    return cls(
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        tax=totals.tax,
        total=totals.total,
    )


class PaymentAuthorization(ActionResult):
  """Secret for the client payment widget plus an order summary snapshot."""

  client_secret: str
  order_id: str
  totals: Totals


class HostedCheckout(ActionResult):
  url: str
  order_id: str
  session_id: str


class WebhookAck(BaseModel):
  received: bool = True
  order_id: Optional[str] = None
  fulfilled: bool = False


# --- Orders ---


class OrderItemView(BaseModel):
  id: str
  product_id: str
  product_name: Optional[str] = None
  quantity: int
  price_at_purchase: int
  line_total: int


class ShippingAddressView(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  street: str
  city: str
  state: Optional[str] = None
  postal_code: str
  country: str


class OrderDetails(BaseModel):
  id: str
  status: str
  created_at: Optional[datetime.datetime] = None
  items: List[OrderItemView]
  shipping_address: Optional[ShippingAddressView] = None
  subtotal: int
  shipping: int
  tax: int
  total: int
  updating: bool


class OrderConfirmationView(BaseModel):
  state: ConfirmationState
  order: Optional[OrderDetails] = None
