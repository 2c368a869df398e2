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

"""Custom exceptions for the storefront server."""

from typing import Sequence


class StorefrontError(Exception):
  """Base class for all storefront exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class UnauthenticatedError(StorefrontError):
  """Raised when an operation requires a signed-in user."""

  def __init__(self, message: str = "Sign in to continue."):
    super().__init__(message, code="UNAUTHENTICATED", status_code=401)


class ValidationError(StorefrontError):
  """Raised when required fields are missing or invalid."""

  def __init__(
      self,
      message: str,
      fields: Sequence[str] = (),
      code: str = "VALIDATION_ERROR",
  ):
    super().__init__(message, code=code, status_code=400)
    self.fields = list(fields)


class InvalidQuantityError(ValidationError):
  """Raised when a cart quantity is below one."""

  def __init__(self, message: str = "Invalid quantity."):
    super().__init__(message, code="INVALID_QUANTITY")


class ResourceNotFoundError(StorefrontError):
  """Raised when a requested resource is absent or not owned by the caller."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class InvalidAddressError(StorefrontError):
  """Raised when the shipping address does not belong to the caller."""

  def __init__(
      self, message: str = "Address not found or does not belong to you."
  ):
    super().__init__(message, code="INVALID_ADDRESS", status_code=400)


class EmptyCartError(StorefrontError):
  """Raised when checkout is attempted with an empty cart."""

  def __init__(self, message: str = "Your cart is empty."):
    super().__init__(message, code="EMPTY_CART", status_code=400)


class OutOfStockError(StorefrontError):
  """Raised when there is insufficient inventory for an item."""

  def __init__(self, message: str, status_code: int = 409):
    super().__init__(message, code="OUT_OF_STOCK", status_code=status_code)


class ItemUnavailableError(StorefrontError):
  """Raised when a cart line can no longer be bought as requested."""

  def __init__(self, product_name: str):
    super().__init__(
        f'Item "{product_name}" is not available in the requested quantity.',
        code="ITEM_UNAVAILABLE",
        status_code=409,
    )
    self.product_name = product_name


class AmountTooSmallError(StorefrontError):
  """Raised when the order total is below the gateway minimum."""

  def __init__(self, message: str):
    super().__init__(message, code="AMOUNT_TOO_SMALL", status_code=400)


class PaymentGatewayError(StorefrontError):
  """Raised when the payment gateway cannot serve a request."""

  def __init__(
      self, message: str, code: str = "GATEWAY_ERROR", status_code: int = 502
  ):
    super().__init__(message, code=code, status_code=status_code)


class WebhookSignatureError(StorefrontError):
  """Raised when a webhook signature is missing or does not verify."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_SIGNATURE", status_code=400)


class MalformedPayloadError(StorefrontError):
  """Raised when a webhook body cannot be interpreted."""

  def __init__(self, message: str):
    super().__init__(message, code="MALFORMED_PAYLOAD", status_code=400)
