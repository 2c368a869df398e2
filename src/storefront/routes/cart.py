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

"""Cart routes for the storefront server."""

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Path
from storefront import dependencies
from storefront.models import ActionResult
from storefront.models import CartCount
from storefront.models import CartItemAddRequest
from storefront.models import CartItemUpdateRequest
from storefront.models import CartMergeRequest
from storefront.models import CartView
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartView, operation_id="get_cart")
async def get_cart(
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> CartView:
  return await cart_service.list()


@router.get("/count", response_model=CartCount, operation_id="get_cart_count")
async def get_cart_count(
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> CartCount:
  """Units in the persisted cart; zero for anonymous callers."""
  return CartCount(count=await cart_service.count())


@router.post("/items", response_model=ActionResult, operation_id="add_to_cart")
async def add_to_cart(
    req: CartItemAddRequest = Body(...),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> ActionResult:
  return await cart_service.add(req.product_id, req.quantity)


@router.patch(
    "/items/{item_id}",
    response_model=ActionResult,
    operation_id="update_cart_item",
)
async def update_cart_item(
    item_id: str = Path(...),
    req: CartItemUpdateRequest = Body(...),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> ActionResult:
  return await cart_service.update_quantity(item_id, req.quantity)


@router.delete(
    "/items/{item_id}",
    response_model=ActionResult,
    operation_id="remove_cart_item",
)
async def remove_cart_item(
    item_id: str = Path(...),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> ActionResult:
  return await cart_service.remove(item_id)


@router.post(
    "/merge", response_model=ActionResult, operation_id="merge_guest_cart"
)
async def merge_guest_cart(
    req: CartMergeRequest = Body(...),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> ActionResult:
  """Fold a guest cart into the caller's persisted cart."""
  return await cart_service.merge_guest(req.items)
