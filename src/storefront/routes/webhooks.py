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

"""Payment webhook route for the storefront server."""

from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Header
from fastapi import Request
from storefront import dependencies
from storefront.models import WebhookAck
from storefront.services.webhook_service import WebhookService

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/payments",
    response_model=WebhookAck,
    operation_id="payment_webhook",
)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    webhook_service: WebhookService = Depends(
        dependencies.get_webhook_service
    ),
) -> WebhookAck:
  """Receive a signed payment event. The raw body is what gets verified."""
  payload = await request.body()
  return await webhook_service.handle(payload, stripe_signature)
