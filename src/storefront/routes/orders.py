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

"""Order confirmation routes for the storefront server."""

from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Path
from fastapi import Query
from storefront import dependencies
from storefront.models import OrderConfirmationView
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get(
    "/by-session/{session_id}",
    response_model=OrderConfirmationView,
    operation_id="get_order_by_session",
)
async def get_order_by_session(
    session_id: str = Path(...),
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> OrderConfirmationView:
  """Confirmation page after a hosted payment redirect."""
  return await order_service.get_confirmation(session_id=session_id)


@router.get(
    "/{order_id}",
    response_model=OrderConfirmationView,
    operation_id="get_order",
)
async def get_order(
    order_id: str = Path(...),
    session_id: Optional[str] = Query(None),
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> OrderConfirmationView:
  """Get an order by ID."""
  return await order_service.get_confirmation(
      order_id=order_id, session_id=session_id
  )
