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

"""Payment gateway factory.

`create_gateway` picks the adapter named by the settings:
- FakeGateway for development and testing
- StripeGateway for production
"""

from storefront.config import Settings
from storefront.gateway.fake_gateway import DEFAULT_WEBHOOK_SECRET
from storefront.gateway.fake_gateway import FakeGateway
from storefront.gateway.port import PaymentGateway
from storefront.gateway.stripe_gateway import StripeGateway


def create_gateway(settings: Settings) -> PaymentGateway:
  """Returns the gateway adapter configured in `settings`."""
  if settings.payment_gateway == "fake":
    return FakeGateway(
        webhook_secret=settings.stripe_webhook_secret or DEFAULT_WEBHOOK_SECRET
    )
  return StripeGateway(
      secret_key=settings.stripe_secret_key,
      webhook_secret=settings.stripe_webhook_secret,
      api_base=settings.stripe_api_base,
  )
