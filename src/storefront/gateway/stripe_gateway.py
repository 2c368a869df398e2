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

"""Stripe payment gateway adapter.

Payment intents and hosted checkout sessions are created through the
stripe-python SDK's async client. Webhook signatures
(`t=<unix time>,v1=<hex digest>`) are verified with `stripe.WebhookSignature`.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import stripe
from storefront.gateway.port import GatewayAuthenticationError
from storefront.gateway.port import GatewayConfigurationError
from storefront.gateway.port import GatewayError
from storefront.gateway.port import GatewayEvent
from storefront.gateway.port import HostedLineItem
from storefront.gateway.port import HostedSession
from storefront.gateway.port import InvalidEventError
from storefront.gateway.port import PaymentGateway
from storefront.gateway.port import PaymentIntent
from storefront.gateway.port import SignatureVerificationError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.stripe.com"
DEFAULT_TOLERANCE = 300  # Seconds


def construct_event(
    payload: bytes,
    signature: str,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> GatewayEvent:
  """Verifies a webhook body against its signature header and parses it.

  Args:
    payload: The raw request body.
    signature: The `Stripe-Signature` header value.
    secret: The endpoint's signing secret.
    tolerance: Maximum age of the signature timestamp in seconds.

  Returns:
    The parsed event.

  Raises:
    SignatureVerificationError: The header is missing, malformed, stale or
      does not sign `payload`.
    InvalidEventError: The verified body is not a well-formed event.
  """
  if not secret:
    raise SignatureVerificationError("Webhook signing secret is not set")
  # Header values arrive latin-1 decoded; a valid header is plain ASCII.
  if not signature or not signature.isascii():
    raise SignatureVerificationError("Malformed signature header")
  try:
    text = payload.decode("utf-8")
  except UnicodeDecodeError as e:
    raise InvalidEventError("Event body is not UTF-8") from e

  try:
    stripe.WebhookSignature.verify_header(text, signature, secret, tolerance)
  except stripe.SignatureVerificationError as e:
    raise SignatureVerificationError(e.user_message or str(e)) from e

  try:
    body = json.loads(text)
  except ValueError as e:
    raise InvalidEventError(f"Event body is not JSON: {e}") from e
  if not isinstance(body, dict) or not isinstance(body.get("type"), str):
    raise InvalidEventError("Event body has no type")
  data = body.get("data")
  if not isinstance(data, dict) or not isinstance(data.get("object"), dict):
    raise InvalidEventError("Event body has no data object")

  return GatewayEvent(id=str(body.get("id", "")), type=body["type"], data=data)


def _error_message(e: stripe.StripeError) -> str:
  return e.user_message or str(e) or type(e).__name__


class StripeGateway(PaymentGateway):
  """Production Stripe gateway adapter."""

  def __init__(
      self,
      secret_key: Optional[str],
      webhook_secret: Optional[str],
      api_base: str = DEFAULT_API_BASE,
      timeout: float = 10.0,
      client: Optional[stripe.StripeClient] = None,
  ) -> None:
    self.secret_key = secret_key
    self.webhook_secret = webhook_secret
    self.api_base = api_base.rstrip("/")
    self.timeout = timeout
    self._client = client

  def _ensure_configured(self) -> stripe.StripeClient:
    if not self.secret_key or not self.secret_key.startswith("sk_"):
      raise GatewayConfigurationError(
          "Stripe secret key is missing or invalid. Use a secret key that"
          " starts with sk_."
      )
    if self._client is None:
      self._client = stripe.StripeClient(
          self.secret_key,
          base_addresses={"api": self.api_base},
          max_network_retries=0,
          http_client=stripe.HTTPXClient(timeout=self.timeout),
      )
    return self._client

  async def create_payment_intent(
      self,
      amount: int,
      currency: str,
      metadata: Dict[str, str],
  ) -> PaymentIntent:
    client = self._ensure_configured()
    try:
      intent = await client.payment_intents.create_async(
          params={
              "amount": amount,
              "currency": currency,
              "payment_method_types": ["card"],
              "metadata": dict(metadata),
          }
      )
    except stripe.AuthenticationError as e:
      raise GatewayAuthenticationError(_error_message(e)) from e
    except stripe.StripeError as e:
      raise GatewayError(
          f"Stripe payment intent failed: {_error_message(e)}"
      ) from e

    logger.info("Created payment intent %s for %d", intent.id, amount)
    return PaymentIntent(
        id=intent.id,
        client_secret=intent.client_secret,
        amount=intent.amount,
        currency=intent.currency,
    )

  async def create_checkout_session(
      self,
      line_items: List[HostedLineItem],
      currency: str,
      success_url: str,
      cancel_url: str,
      client_reference_id: str,
      metadata: Dict[str, str],
  ) -> HostedSession:
    client = self._ensure_configured()
    try:
      session = await client.checkout.sessions.create_async(
          params={
              "mode": "payment",
              "success_url": success_url,
              "cancel_url": cancel_url,
              "client_reference_id": client_reference_id,
              "metadata": dict(metadata),
              "line_items": [_line_item(line, currency) for line in line_items],
          }
      )
    except stripe.AuthenticationError as e:
      raise GatewayAuthenticationError(_error_message(e)) from e
    except stripe.StripeError as e:
      raise GatewayError(
          f"Stripe checkout session failed: {_error_message(e)}"
      ) from e

    logger.info("Created checkout session %s", session.id)
    return HostedSession(id=session.id, url=session.url)

  def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
    return construct_event(payload, signature, self.webhook_secret or "")


def _line_item(line: HostedLineItem, currency: str) -> Dict[str, Any]:
  product_data: Dict[str, Any] = {"name": line.name}
  if line.image:
    product_data["images"] = [line.image]
  if line.product_id:
    product_data["metadata"] = {"product_id": line.product_id}
  return {
      "quantity": line.quantity,
      "price_data": {
          "currency": currency,
          "unit_amount": line.unit_amount,
          "product_data": product_data,
      },
  }
