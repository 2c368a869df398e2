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

"""Shipping addresses of the requesting user."""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import db
from storefront.exceptions import ValidationError
from storefront.models import AddressCreated
from storefront.models import AddressCreateRequest
from storefront.models import AddressView

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("street", "city", "postal_code", "country")


def _clean(value: Optional[str]) -> Optional[str]:
  value = (value or "").strip()
  return value or None


class AddressService:
  """Creates and lists addresses; at most one per user is the default."""

  def __init__(self, session: AsyncSession, user_id: Optional[str]):
    self.session = session
    self.user_id = user_id

  async def create_address(self, req: AddressCreateRequest) -> AddressCreated:
    user_id = auth.require_user(self.user_id)

    missing = [f for f in _REQUIRED_FIELDS if not _clean(getattr(req, f))]
    if missing:
      raise ValidationError(
          f"Missing required fields: {', '.join(missing)}", fields=missing
      )

    # Unsetting previous defaults and inserting share one transaction.
    try:
      if req.is_default:
        await db.unset_default_addresses(self.session, user_id)
      address = db.Address(
          user_id=user_id,
          label=_clean(req.label),
          street=req.street.strip(),
          city=req.city.strip(),
          state=_clean(req.state),
          postal_code=req.postal_code.strip(),
          country=req.country.strip(),
          is_default=req.is_default,
      )
      self.session.add(address)
      await self.session.commit()
    except Exception:
      await self.session.rollback()
      raise

    logger.info("Created address %s for user %s", address.id, user_id)
    return AddressCreated(address_id=address.id)

  async def list_addresses(self) -> List[AddressView]:
    """Returns the caller's addresses, default first, then newest."""
    user_id = auth.require_user(self.user_id)
    addresses = await db.get_addresses(self.session, user_id)
    return [AddressView.model_validate(a) for a in addresses]
