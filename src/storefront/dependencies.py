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

"""FastAPI dependencies for the storefront server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Settings and database session management.
- Resolving the caller's identity from the Authorization header.
- Payment gateway selection.
- Service instantiation (cart, addresses, catalog, checkout, orders, webhooks).

Tests replace `get_db`, `get_settings` and `get_payment_gateway` through
`app.dependency_overrides`.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi import Header
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import config
from storefront import db
from storefront import gateway
from storefront.gateway.port import PaymentGateway
from storefront.services.address_service import AddressService
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService
from storefront.services.review_service import ReviewService
from storefront.services.webhook_service import WebhookService


def get_settings() -> config.Settings:
  """Dependency provider for runtime settings."""
  return config.get_settings()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
  """Dependency provider for a database session."""
  async with db.manager.session_factory() as session:
    yield session


def get_payment_gateway(
    settings: config.Settings = Depends(get_settings),
) -> PaymentGateway:
  """Dependency provider for the configured payment gateway."""
  return gateway.create_gateway(settings)


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    settings: config.Settings = Depends(get_settings),
) -> Optional[str]:
  """Resolves the caller from a bearer token. None for anonymous requests."""
  return auth.user_from_authorization(authorization, settings.auth_secret)


def get_catalog_service(
    session: AsyncSession = Depends(get_db),
) -> CatalogService:
  return CatalogService(session)


def get_cart_service(
    session: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> CartService:
  return CartService(session, user_id)


def get_review_service(
    session: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> ReviewService:
  return ReviewService(session, user_id)


def get_address_service(
    session: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> AddressService:
  return AddressService(session, user_id)


def get_checkout_service(
    request: Request,
    session: AsyncSession = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: config.Settings = Depends(get_settings),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> CheckoutService:
  """Dependency provider for CheckoutService."""
  return CheckoutService(
      session,
      payment_gateway,
      settings,
      user_id,
      str(request.base_url),
  )


def get_webhook_service(
    session: AsyncSession = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
) -> WebhookService:
  return WebhookService(session, payment_gateway)


def get_order_service(
    session: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> OrderService:
  return OrderService(session, user_id)
