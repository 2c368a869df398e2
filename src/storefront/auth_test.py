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

"""Tests for bearer token identity, startup checks and the page cache."""

import datetime

from absl.testing import absltest
from storefront import auth
from storefront import cache
from storefront import server
from storefront import testing
from storefront.exceptions import UnauthenticatedError

SECRET = "secret"


class AuthTest(absltest.TestCase):

  def test_round_trip(self):
    token = auth.issue_token("user-1", SECRET)

    self.assertEqual(
        auth.user_from_authorization(f"Bearer {token}", SECRET), "user-1"
    )

  def test_rejects_wrong_secret_and_expired_tokens(self):
    forged = auth.issue_token("user-1", "other")
    expired = auth.issue_token(
        "user-1", SECRET, expires_in=datetime.timedelta(seconds=-1)
    )

    self.assertIsNone(auth.decode_token(forged, SECRET))
    self.assertIsNone(auth.decode_token(expired, SECRET))

  def test_malformed_headers_are_anonymous(self):
    token = auth.issue_token("user-1", SECRET)

    for header in (None, "", token, f"Basic {token}", "Bearer "):
      self.assertIsNone(auth.user_from_authorization(header, SECRET), header)

  def test_require_user(self):
    self.assertEqual(auth.require_user("user-1"), "user-1")
    with self.assertRaises(UnauthenticatedError):
      auth.require_user(None)

  def test_no_secret_means_anonymous(self):
    token = auth.issue_token("user-1", SECRET)

    self.assertIsNone(auth.user_from_authorization(f"Bearer {token}", None))
    self.assertIsNone(auth.user_from_authorization(f"Bearer {token}", ""))


class CheckSettingsTest(absltest.TestCase):

  def test_missing_auth_secret_blocks_production_start(self):
    settings = testing.make_settings(
        auth_secret=None,
        payment_gateway="stripe",
        stripe_secret_key="sk_live_x",
    )

    self.assertFalse(settings.development)
    with self.assertRaises(SystemExit):
      server.check_settings(settings)

  def test_configured_secret_starts(self):
    server.check_settings(
        testing.make_settings(
            payment_gateway="stripe", stripe_secret_key="sk_live_x"
        )
    )

  def test_development_modes(self):
    self.assertTrue(testing.make_settings(payment_gateway="fake").development)
    self.assertTrue(
        testing.make_settings(payment_gateway="stripe", debug=True).development
    )
    production = testing.make_settings(payment_gateway="stripe")
    self.assertFalse(production.development)


class PageCacheTest(absltest.TestCase):

  def test_invalidate_by_prefix(self):
    page_cache = cache.PageCache()
    page_cache.set(cache.product_page_key("tee"), 1)
    page_cache.set(f"{cache.HOME_PAGE}latest", 2)
    page_cache.set("other", 3)

    page_cache.invalidate(cache.PRODUCT_PAGE, cache.HOME_PAGE)

    self.assertIsNone(page_cache.get(cache.product_page_key("tee")))
    self.assertIsNone(page_cache.get(f"{cache.HOME_PAGE}latest"))
    self.assertEqual(page_cache.get("other"), 3)


if __name__ == "__main__":
  absltest.main()
