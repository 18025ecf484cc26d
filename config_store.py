"""
config_store.py

File-backed store for named rule sets ("configs").

We store a single JSON document mapping config name -> list of rules, by default in
`data/configs.json` (see `webhook_helpers.get_configs_path`).

Every mutation reloads the document, applies the change and rewrites the whole file.
Writes are atomic (write temp file + rename) and protected by an in-process lock.
Separate processes writing the same file are not coordinated: last writer wins.
"""

import json
import os
import threading
from typing import Any, Dict, List

from errors import InvalidInput, NotFound


def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=False)
        f.write("\n")
    os.replace(tmp, path)


class ConfigStore:
    """
    Name -> rules mapping persisted to one JSON document.

    Rules are opaque to the store: any JSON value is accepted as a rule, only the
    container has to be a list.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._ensure_document()

    def _ensure_document(self) -> None:
        with self._lock:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            if not os.path.exists(self.path):
                _atomic_write_json(self.path, {})

    def _load(self) -> Dict[str, Any]:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config document {self.path} must contain a JSON object")
        return data

    def list_names(self) -> List[str]:
        with self._lock:
            return list(self._load().keys())

    def get(self, name: str) -> List[Any]:
        with self._lock:
            configs = self._load()
        if name not in configs:
            raise NotFound("Config not found")
        return configs[name]

    def save(self, name: Any, rules: Any) -> str:
        """
        Store `rules` under the trimmed `name`, replacing any previous rule list.
        Returns the trimmed name.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("Name is required")
        if not isinstance(rules, list):
            raise InvalidInput("Rules array is required")

        key = name.strip()
        with self._lock:
            configs = self._load()
            configs[key] = rules
            _atomic_write_json(self.path, configs)
        return key

    def delete(self, name: str) -> None:
        with self._lock:
            configs = self._load()
            if name not in configs:
                raise NotFound("Config not found")
            del configs[name]
            _atomic_write_json(self.path, configs)
