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

"""Storefront Server (Python/FastAPI)."""

import logging
import sys
from typing import Sequence

from absl import app as absl_app
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from storefront import __version__
from storefront import config
from storefront.exceptions import StorefrontError
from storefront.routes.addresses import router as addresses_router
from storefront.routes.cart import router as cart_router
from storefront.routes.catalog import router as catalog_router
from storefront.routes.checkout import router as checkout_router
from storefront.routes.orders import router as orders_router
from storefront.routes.webhooks import router as webhooks_router
import uvicorn


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Storefront Service",
    version=__version__,
    description="Catalog, cart and checkout API of the storefront",
    lifespan=config.lifespan,
)


@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError):
  """Converts storefront exceptions to the uniform error shape."""
  del request  # Unused.
  content = {"ok": False, "error": exc.message, "code": exc.code}
  fields = getattr(exc, "fields", None)
  if fields:
    content["fields"] = fields
  return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
):
  """Reports malformed request bodies and parameters as validation errors."""
  del request  # Unused.
  fields = [
      ".".join(str(p) for p in error.get("loc", ()) if p not in ("body",))
      for error in exc.errors()
  ]
  return JSONResponse(
      status_code=400,
      content={
          "ok": False,
          "error": "Invalid request.",
          "code": "VALIDATION_ERROR",
          "fields": fields,
      },
  )


@app.get("/", operation_id="health")
async def health() -> dict:
  return {"status": "ok", "version": __version__}


app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(addresses_router)
app.include_router(checkout_router)
app.include_router(webhooks_router)
app.include_router(orders_router)


def check_settings(settings: config.Settings) -> None:
  """Exits unless `settings` are safe to serve with."""
  if not settings.auth_secret:
    logger.error(
        "--auth_secret (or AUTH_SECRET) must be provided unless"
        " --payment_gateway=fake or --debug is set."
    )
    sys.exit(1)
  if settings.payment_gateway == "stripe" and not settings.stripe_webhook_secret:
    logger.warning("No webhook secret configured; webhooks will be rejected.")


def main(argv: Sequence[str]) -> None:
  """Main entry point for the Storefront Server."""
  del argv  # Unused.

  if config.FLAGS.port is None:
    logger.error("--port must be provided.")
    print("\nUsage:")
    print(config.FLAGS.main_module_help())
    sys.exit(1)

  check_settings(config.get_settings())

  uvicorn.run(app, host=config.FLAGS.host, port=config.FLAGS.port)


def run() -> None:
  """Console script entry point."""
  load_dotenv()
  absl_app.run(main)


if __name__ == "__main__":
  run()
