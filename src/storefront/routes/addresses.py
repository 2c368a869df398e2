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

"""Address routes for the storefront server."""

from typing import List

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from storefront import dependencies
from storefront.models import AddressCreated
from storefront.models import AddressCreateRequest
from storefront.models import AddressView
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("", response_model=List[AddressView], operation_id="list_addresses")
async def list_addresses(
    address_service: AddressService = Depends(
        dependencies.get_address_service
    ),
) -> List[AddressView]:
  return await address_service.list_addresses()


@router.post("", response_model=AddressCreated, operation_id="create_address")
async def create_address(
    req: AddressCreateRequest = Body(...),
    address_service: AddressService = Depends(
        dependencies.get_address_service
    ),
) -> AddressCreated:
  return await address_service.create_address(req)
