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

"""Shared configuration and startup logic for the storefront server."""

import contextlib
import os
from typing import Optional

from absl import flags
from fastapi import FastAPI
from pydantic import BaseModel
from storefront import db

FLAGS = flags.FLAGS

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///storefront.db"
# Only used with the fake gateway or --debug.
DEV_AUTH_SECRET = "dev-auth-secret"

_SETTINGS_CACHE = None


# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string(
      "database_url", DEFAULT_DATABASE_URL, "SQLAlchemy URL of the store DB"
  )
  flags.DEFINE_string("host", "0.0.0.0", "Interface to bind the server to")
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string(
      "auth_secret", None, "HS256 secret used to verify bearer tokens"
  )
  flags.DEFINE_enum(
      "payment_gateway",
      "stripe",
      ["stripe", "fake"],
      "Payment gateway adapter to use",
  )
  flags.DEFINE_string("stripe_secret_key", None, "Stripe secret API key")
  flags.DEFINE_string(
      "stripe_webhook_secret", None, "Stripe webhook signing secret"
  )
  flags.DEFINE_string(
      "stripe_api_base", "https://api.stripe.com", "Stripe API base URL"
  )
  flags.DEFINE_string(
      "storefront_url",
      None,
      "Public URL used in payment redirects. Defaults to the request URL.",
  )
  flags.DEFINE_string("currency", "usd", "ISO currency code for charges")
  flags.DEFINE_bool(
      "debug", False, "Expose detailed gateway errors to clients"
  )
except flags.DuplicateFlagError:
  pass


class Settings(BaseModel):
  """Runtime settings handed to services through FastAPI dependencies."""

  database_url: str = DEFAULT_DATABASE_URL
  auth_secret: Optional[str] = None
  payment_gateway: str = "stripe"
  stripe_secret_key: Optional[str] = None
  stripe_webhook_secret: Optional[str] = None
  stripe_api_base: str = "https://api.stripe.com"
  storefront_url: Optional[str] = None
  currency: str = "usd"
  debug: bool = False

  @property
  def development(self) -> bool:
    """True when running against the fake gateway or with --debug."""
    return self.payment_gateway == "fake" or self.debug


def get_settings() -> Settings:
  """Builds and caches settings from parsed flags and the environment."""
  global _SETTINGS_CACHE
  if _SETTINGS_CACHE:
    return _SETTINGS_CACHE

  _SETTINGS_CACHE = Settings(
      database_url=FLAGS.database_url,
      auth_secret=FLAGS.auth_secret or os.environ.get("AUTH_SECRET"),
      payment_gateway=FLAGS.payment_gateway,
      stripe_secret_key=(
          FLAGS.stripe_secret_key or os.environ.get("STRIPE_SECRET_KEY")
      ),
      stripe_webhook_secret=(
          FLAGS.stripe_webhook_secret
          or os.environ.get("STRIPE_WEBHOOK_SECRET")
      ),
      stripe_api_base=FLAGS.stripe_api_base,
      storefront_url=FLAGS.storefront_url,
      currency=FLAGS.currency,
      debug=FLAGS.debug,
  )
  if not _SETTINGS_CACHE.auth_secret and _SETTINGS_CACHE.development:
    _SETTINGS_CACHE.auth_secret = DEV_AUTH_SECRET
  return _SETTINGS_CACHE


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Shared lifespan manager for initializing the database."""
  del app  # Unused.
  # When imported as a library (e.g. by a test runner) flags are never parsed
  # and the caller provides its own database through dependency overrides.
  if FLAGS.is_parsed():
    await db.manager.init_db(get_settings().database_url)
  yield
  await db.manager.close()
