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

"""In-process cache of rendered catalog pages."""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

HOME_PAGE = "home:"
PRODUCT_PAGE = "product:"


def product_page_key(slug: str) -> str:
  return f"{PRODUCT_PAGE}{slug}"


class PageCache:
  """Holds rendered catalog responses until a mutation invalidates them."""

  def __init__(self) -> None:
    self._entries: Dict[str, Any] = {}

  def get(self, key: str) -> Optional[Any]:
    return self._entries.get(key)

  def set(self, key: str, value: Any) -> None:
    self._entries[key] = value

  def invalidate(self, *prefixes: str) -> None:
    """Drops every entry whose key starts with one of `prefixes`."""
    stale = [k for k in self._entries if k.startswith(prefixes)]
    for key in stale:
      del self._entries[key]
    if stale:
      logger.debug("Invalidated %d cached pages", len(stale))


# Global cache instance shared by the catalog routes and mutating services.
page_cache = PageCache()
