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

"""Client-side key/value storage.

`MemoryStorage` lives as long as the client process, like a browser's session
storage. `JsonFileStorage` survives restarts, like local storage.
"""

import abc
import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class Storage(abc.ABC):
  """String key/value store."""

  @abc.abstractmethod
  def get_item(self, key: str) -> Optional[str]:
    """Returns the stored value or None."""

  @abc.abstractmethod
  def set_item(self, key: str, value: str) -> None:
    """Stores a value, replacing any previous one."""

  @abc.abstractmethod
  def remove_item(self, key: str) -> None:
    """Deletes a value. Missing keys are ignored."""


class MemoryStorage(Storage):

  def __init__(self) -> None:
    self._items: Dict[str, str] = {}

  def get_item(self, key: str) -> Optional[str]:
    return self._items.get(key)

  def set_item(self, key: str, value: str) -> None:
    self._items[key] = value

  def remove_item(self, key: str) -> None:
    self._items.pop(key, None)


class JsonFileStorage(Storage):
  """Stores all entries in one JSON object on disk."""

  def __init__(self, path: str) -> None:
    self.path = path

  def _load(self) -> Dict[str, str]:
    if not os.path.exists(self.path):
      return {}
    try:
      with open(self.path, "r", encoding="utf-8") as f:
        data = json.load(f)
    except ValueError:
      logger.warning("Ignoring corrupt storage file %s", self.path)
      return {}
    return data if isinstance(data, dict) else {}

  def _save(self, data: Dict[str, str]) -> None:
    tmp_path = f"{self.path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
      json.dump(data, f)
    os.replace(tmp_path, self.path)

  def get_item(self, key: str) -> Optional[str]:
    return self._load().get(key)

  def set_item(self, key: str, value: str) -> None:
    data = self._load()
    data[key] = value
    self._save(data)

  def remove_item(self, key: str) -> None:
    data = self._load()
    if data.pop(key, None) is not None:
      self._save(data)
