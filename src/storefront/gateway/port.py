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

"""Payment gateway port (abstract interface).

Defines the contract that gateway adapters implement so the checkout and
webhook services can switch between `FakeGateway` (development and tests) and
`StripeGateway` (production) without code changes.
"""

import abc
import dataclasses
from typing import Any, Dict, List, Optional


class GatewayError(Exception):
  """The gateway rejected or failed to serve a request."""


class GatewayConfigurationError(GatewayError):
  """The gateway credentials are missing or malformed."""


class GatewayAuthenticationError(GatewayError):
  """The gateway rejected the configured credentials."""


class SignatureVerificationError(GatewayError):
  """A webhook signature is missing, stale or does not match."""


class InvalidEventError(GatewayError):
  """A webhook body is not a well-formed event."""


@dataclasses.dataclass(frozen=True)
class PaymentIntent:
  """A payment authorization confirmed client-side with `client_secret`."""

  id: str
  client_secret: Optional[str]
  amount: int
  currency: str


@dataclasses.dataclass(frozen=True)
class HostedLineItem:
  """One line of a hosted checkout page. Amounts are in cents."""

  name: str
  unit_amount: int
  quantity: int
  image: Optional[str] = None
  product_id: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class HostedSession:
  """A hosted checkout page the customer is redirected to."""

  id: str
  url: Optional[str]


@dataclasses.dataclass(frozen=True)
class GatewayEvent:
  """A verified webhook event."""

  id: str
  type: str
  data: Dict[str, Any]


class PaymentGateway(abc.ABC):
  """Abstract payment gateway interface."""

  @abc.abstractmethod
  async def create_payment_intent(
      self,
      amount: int,
      currency: str,
      metadata: Dict[str, str],
  ) -> PaymentIntent:
    """Requests a payment authorization for `amount` cents."""

  @abc.abstractmethod
  async def create_checkout_session(
      self,
      line_items: List[HostedLineItem],
      currency: str,
      success_url: str,
      cancel_url: str,
      client_reference_id: str,
      metadata: Dict[str, str],
  ) -> HostedSession:
    """Requests a hosted checkout page."""

  @abc.abstractmethod
  def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
    """Verifies a webhook body against its signature header and parses it."""
