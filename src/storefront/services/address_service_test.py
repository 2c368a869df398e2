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

"""Tests for the address service."""

from absl.testing import absltest
from storefront import db
from storefront import testing
from storefront.exceptions import UnauthenticatedError
from storefront.exceptions import ValidationError
from storefront.models import AddressCreateRequest
from storefront.services.address_service import AddressService


def _request(**overrides):
  values = {
      "street": "1 Main St",
      "city": "Springfield",
      "postal_code": "12345",
      "country": "US",
  }
  values.update(overrides)
  return AddressCreateRequest(**values)


class AddressServiceTest(testing.DatabaseTestCase):

  def setUp(self) -> None:
    super().setUp()
    self.user_id = self.seed_user()

  def _create(self, req, user_id="default"):
    user_id = self.user_id if user_id == "default" else user_id

    async def create():
      async with self.session() as session:
        return await AddressService(session, user_id).create_address(req)

    return testing.run_async(create())

  def _list(self):
    async def list_addresses():
      async with self.session() as session:
        return await AddressService(session, self.user_id).list_addresses()

    return testing.run_async(list_addresses())

  def test_create_trims_fields(self):
    result = self._create(
        _request(street="  9 Elm St ", label="  ", state=" IL ")
    )

    self.assertTrue(result.ok)
    address = self.fetch(db.Address, result.address_id)
    self.assertEqual(address.street, "9 Elm St")
    self.assertEqual(address.state, "IL")
    self.assertIsNone(address.label)
    self.assertFalse(address.is_default)

  def test_create_lists_all_missing_fields(self):
    with self.assertRaises(ValidationError) as ctx:
      self._create(_request(street=" ", postal_code="", country="US"))

    self.assertEqual(ctx.exception.fields, ["street", "postal_code"])
    self.assertEmpty(self.fetch_all(db.Address))

  def test_create_requires_identity(self):
    with self.assertRaises(UnauthenticatedError):
      self._create(_request(), user_id=None)

  def test_new_default_replaces_previous_default(self):
    self.seed_address(self.user_id, is_default=True)
    other_user = self.seed_user("user-2")
    foreign_default = self.seed_address(other_user, is_default=True)

    result = self._create(_request(is_default=True))

    defaults = self.fetch_all(
        db.Address,
        db.Address.user_id == self.user_id,
        db.Address.is_default.is_(True),
    )
    self.assertEqual([a.id for a in defaults], [result.address_id])
    self.assertTrue(self.fetch(db.Address, foreign_default).is_default)

  def test_list_orders_default_first_then_newest(self):
    oldest = self.seed_address(self.user_id, street="oldest")
    default = self.seed_address(self.user_id, is_default=True, street="default")
    newest = self.seed_address(self.user_id, street="newest")

    addresses = self._list()

    self.assertEqual([a.id for a in addresses], [default, newest, oldest])


if __name__ == "__main__":
  absltest.main()
