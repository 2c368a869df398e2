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

"""Tests for the guest cart store and client storage."""

import json
import os
import shutil
import tempfile

from absl.testing import absltest
from storefront.client.guest_cart import GuestCartStore
from storefront.client.guest_cart import NotHydratedError
from storefront.client.guest_cart import STORAGE_KEY
from storefront.client.storage import JsonFileStorage
from storefront.client.storage import MemoryStorage


def _quantities(store):
  return {i.product_id: i.quantity for i in store.items}


class GuestCartStoreTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.storage = MemoryStorage()
    self.store = GuestCartStore(self.storage)
    self.store.rehydrate()

  def test_use_before_rehydrate_raises(self):
    store = GuestCartStore(MemoryStorage())

    with self.assertRaises(NotHydratedError):
      _ = store.items
    with self.assertRaises(NotHydratedError):
      store.add_item("p1", 1)

  def test_add_item_merges_by_product(self):
    self.store.add_item("p1", 2)
    self.store.add_item("p2", 1)
    self.store.add_item("p1", 3)

    self.assertEqual(_quantities(self.store), {"p1": 5, "p2": 1})
    self.assertEqual(self.store.total_count(), 6)

  def test_add_item_negative_delta(self):
    self.store.add_item("p1", 2)
    self.store.add_item("p1", -1)
    self.assertEqual(_quantities(self.store), {"p1": 1})

    self.store.add_item("p1", -5)
    self.assertEqual(_quantities(self.store), {})

    self.store.add_item("p2", 0)
    self.store.add_item("p2", -1)
    self.assertEqual(_quantities(self.store), {})

  def test_update_quantity(self):
    self.store.add_item("p1", 2)

    self.store.update_quantity("p1", 7)
    self.assertEqual(_quantities(self.store), {"p1": 7})

    self.store.update_quantity("missing", 3)
    self.assertEqual(_quantities(self.store), {"p1": 7})

    self.store.update_quantity("p1", 0)
    self.assertEqual(_quantities(self.store), {})

  def test_remove_and_clear(self):
    self.store.add_item("p1", 1)
    self.store.add_item("p2", 1)

    self.store.remove_item("p1")
    self.assertEqual(_quantities(self.store), {"p2": 1})

    self.store.clear()
    self.assertEmpty(self.store.items)

  def test_persists_in_wire_format(self):
    self.store.add_item("p1", 2)

    self.assertEqual(
        json.loads(self.storage.get_item(STORAGE_KEY)),
        [{"productId": "p1", "quantity": 2}],
    )

  def test_rehydrate_loads_persisted_items_once(self):
    self.storage.set_item(
        STORAGE_KEY, json.dumps([{"productId": "p9", "quantity": 4}])
    )
    store = GuestCartStore(self.storage)
    store.rehydrate()
    self.assertEqual(_quantities(store), {"p9": 4})

    self.storage.set_item(STORAGE_KEY, "[]")
    store.rehydrate()
    self.assertEqual(_quantities(store), {"p9": 4})

  def test_rehydrate_discards_unreadable_state(self):
    self.storage.set_item(STORAGE_KEY, "{broken")
    store = GuestCartStore(self.storage)

    store.rehydrate()

    self.assertEmpty(store.items)

  def test_survives_restart_with_file_storage(self):
    tmp_dir = tempfile.mkdtemp()
    self.addCleanup(shutil.rmtree, tmp_dir)
    path = os.path.join(tmp_dir, "local.json")
    store = GuestCartStore(JsonFileStorage(path))
    store.rehydrate()
    store.add_item("p1", 3)

    reopened = GuestCartStore(JsonFileStorage(path))
    reopened.rehydrate()

    self.assertEqual(_quantities(reopened), {"p1": 3})


if __name__ == "__main__":
  absltest.main()
