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

"""Checkout routes for the storefront server."""

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from storefront import dependencies
from storefront.models import CheckoutRequest
from storefront.models import HostedCheckout
from storefront.models import PaymentAuthorization
from storefront.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "/payment-intent",
    response_model=PaymentAuthorization,
    operation_id="create_payment_intent",
)
async def create_payment_intent(
    req: CheckoutRequest = Body(...),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> PaymentAuthorization:
  """Start an embedded payment for the caller's cart."""
  return await checkout_service.create_payment_intent(req.address_id)


@router.post(
    "/session",
    response_model=HostedCheckout,
    operation_id="create_checkout_session",
)
async def create_checkout_session(
    req: CheckoutRequest = Body(...),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> HostedCheckout:
  """Start a hosted payment page for the caller's cart."""
  return await checkout_service.create_checkout_session(req.address_id)
