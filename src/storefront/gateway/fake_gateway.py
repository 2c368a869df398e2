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

"""In-memory payment gateway for development and tests.

Records every request, and can be told to fail the next calls or to omit the
client secret so compensation paths can be exercised. Webhooks use the same
signature scheme as the real gateway and are verified the same way.
"""

import dataclasses
import hashlib
import hmac
import time
from typing import Any, Dict, List, Optional
import uuid

from storefront.gateway import stripe_gateway
from storefront.gateway.port import GatewayEvent
from storefront.gateway.port import HostedLineItem
from storefront.gateway.port import HostedSession
from storefront.gateway.port import PaymentGateway
from storefront.gateway.port import PaymentIntent

DEFAULT_WEBHOOK_SECRET = "whsec_fake"


@dataclasses.dataclass
class RecordedSession:
  session: HostedSession
  line_items: List[HostedLineItem]
  success_url: str
  cancel_url: str
  client_reference_id: str
  metadata: Dict[str, str]


class FakeGateway(PaymentGateway):
  """Gateway double that never leaves the process."""

  def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET) -> None:
    self.webhook_secret = webhook_secret
    self.fail_with: Optional[Exception] = None
    self.omit_client_secret = False
    self.omit_session_url = False
    self.payment_intents: List[PaymentIntent] = []
    self.intent_metadata: List[Dict[str, str]] = []
    self.sessions: List[RecordedSession] = []

  async def create_payment_intent(
      self,
      amount: int,
      currency: str,
      metadata: Dict[str, str],
  ) -> PaymentIntent:
    if self.fail_with:
      raise self.fail_with
    intent_id = f"pi_{uuid.uuid4().hex[:24]}"
    intent = PaymentIntent(
        id=intent_id,
        client_secret=(
            None
            if self.omit_client_secret
            else f"{intent_id}_secret_{uuid.uuid4().hex[:16]}"
        ),
        amount=amount,
        currency=currency,
    )
    self.payment_intents.append(intent)
    self.intent_metadata.append(dict(metadata))
    return intent

  async def create_checkout_session(
      self,
      line_items: List[HostedLineItem],
      currency: str,
      success_url: str,
      cancel_url: str,
      client_reference_id: str,
      metadata: Dict[str, str],
  ) -> HostedSession:
    del currency  # Unused.
    if self.fail_with:
      raise self.fail_with
    session_id = f"cs_test_{uuid.uuid4().hex[:24]}"
    session = HostedSession(
        id=session_id,
        url=(
            None
            if self.omit_session_url
            else f"https://checkout.fake/pay/{session_id}"
        ),
    )
    self.sessions.append(
        RecordedSession(
            session=session,
            line_items=list(line_items),
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=client_reference_id,
            metadata=dict(metadata),
        )
    )
    return session

  def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
    return stripe_gateway.construct_event(
        payload, signature, self.webhook_secret
    )

  def sign(self, payload: bytes, timestamp: Optional[int] = None) -> str:
    """Returns a signature header for `payload` as the gateway sends it."""
    return sign_payload(payload, self.webhook_secret, timestamp)


def sign_payload(
    payload: bytes, secret: str, timestamp: Optional[int] = None
) -> str:
  """Builds a `t=...,v1=...` header: HMAC-SHA256 over "<t>.<body>"."""
  timestamp = int(time.time()) if timestamp is None else timestamp
  signed = f"{timestamp}.".encode("utf-8") + payload
  digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
  return f"t={timestamp},v1={digest}"


def build_event(
    event_type: str, obj: Dict[str, Any], event_id: Optional[str] = None
) -> Dict[str, Any]:
  """Builds a webhook event body in the gateway's shape."""
  return {
      "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
      "type": event_type,
      "data": {"object": obj},
  }
