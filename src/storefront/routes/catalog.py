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

"""Catalog and review routes for the storefront server."""

from typing import List, Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Path
from fastapi import Query
from storefront import dependencies
from storefront.enums import CatalogSort
from storefront.models import ActionResult
from storefront.models import CatalogPage
from storefront.models import CategorySummary
from storefront.models import ProductDetail
from storefront.models import ProductSummary
from storefront.models import ReviewRequest
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.review_service import ReviewService

router = APIRouter(tags=["catalog"])


@router.get(
    "/categories",
    response_model=List[CategorySummary],
    operation_id="list_categories",
)
async def list_categories(
    catalog_service: CatalogService = Depends(
        dependencies.get_catalog_service
    ),
) -> List[CategorySummary]:
  """List top-level categories with product counts."""
  return await catalog_service.categories()


@router.get(
    "/products",
    response_model=CatalogPage,
    operation_id="search_products",
)
async def search_products(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    sort: CatalogSort = Query(CatalogSort.PRICE_ASC),
    min_price: Optional[int] = Query(None),
    max_price: Optional[int] = Query(None),
    page: int = Query(1),
    catalog_service: CatalogService = Depends(
        dependencies.get_catalog_service
    ),
) -> CatalogPage:
  """Search the catalog. Price bounds are whole currency units."""
  return await catalog_service.search(
      query=q,
      category=category,
      sort=sort,
      min_price=min_price,
      max_price=max_price,
      page=page,
  )


@router.get(
    "/products/latest",
    response_model=List[ProductSummary],
    operation_id="latest_products",
)
async def latest_products(
    catalog_service: CatalogService = Depends(
        dependencies.get_catalog_service
    ),
) -> List[ProductSummary]:
  return await catalog_service.latest()


@router.get(
    "/products/lookup",
    response_model=List[ProductSummary],
    operation_id="lookup_products",
)
async def lookup_products(
    ids: str = Query("", description="Comma-separated product IDs"),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> List[ProductSummary]:
  """Resolve guest cart product IDs to products."""
  product_ids = [i.strip() for i in ids.split(",") if i.strip()]
  return await cart_service.get_products_by_ids(product_ids)


@router.get(
    "/products/{slug}",
    response_model=ProductDetail,
    operation_id="get_product",
)
async def get_product(
    slug: str = Path(...),
    catalog_service: CatalogService = Depends(
        dependencies.get_catalog_service
    ),
) -> ProductDetail:
  return await catalog_service.detail(slug)


@router.post(
    "/products/{product_id}/reviews",
    response_model=ActionResult,
    operation_id="submit_review",
)
async def submit_review(
    product_id: str = Path(...),
    review: ReviewRequest = Body(...),
    review_service: ReviewService = Depends(dependencies.get_review_service),
) -> ActionResult:
  """Create or replace the caller's review of a product."""
  return await review_service.submit_review(
      product_id, review.rating, review.body
  )
