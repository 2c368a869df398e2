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

"""Bearer token handling.

Sign-in and token issuance live outside the storefront. Requests carry an
HS256 JWT whose `sub` claim is the user ID; this module verifies it and turns
it into an optional identity. `issue_token` exists for development and tests.
"""

import datetime
import logging
from typing import Optional

import jwt
from storefront.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def issue_token(
    user_id: str,
    secret: str,
    expires_in: datetime.timedelta = datetime.timedelta(hours=12),
) -> str:
  """Issues a signed token for a user."""
  now = datetime.datetime.now(datetime.timezone.utc)
  payload = {"sub": user_id, "iat": now, "exp": now + expires_in}
  return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Optional[str]:
  """Returns the user ID carried by a valid token, or None."""
  try:
    payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
  except jwt.PyJWTError as e:
    logger.warning("Rejected bearer token: %s", e)
    return None
  return payload.get("sub")


def user_from_authorization(
    authorization: Optional[str], secret: Optional[str]
) -> Optional[str]:
  """Extracts the user ID from an `Authorization: Bearer ...` header.

  Without a secret no token can be trusted and every request is anonymous.
  """
  if not authorization or not secret:
    return None
  scheme, _, token = authorization.partition(" ")
  if scheme.lower() != "bearer" or not token.strip():
    return None
  return decode_token(token.strip(), secret)


def require_user(user_id: Optional[str]) -> str:
  """Returns the user ID or raises if the request is anonymous."""
  if not user_id:
    raise UnauthenticatedError()
  return user_id
