"""
Durable storage for the bearer token.

The client persists exactly one key, ``auth_token``, in a small JSON
key-value file. Writes are atomic; reads of a missing or corrupt file
behave as "no token".
"""

import json
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)

AUTH_TOKEN_KEY = "auth_token"


class TokenStore:
    """Interface for token persistence"""

    def get_token(self) -> Optional[str]:
        raise NotImplementedError

    def set_token(self, token: str) -> None:
        raise NotImplementedError

    def clear_token(self) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    """Process-local store, for tests and embedding"""

    def __init__(self, token: Optional[str] = None):
        self._data: Dict[str, str] = {}
        if token:
            self._data[AUTH_TOKEN_KEY] = token

    def get_token(self) -> Optional[str]:
        return self._data.get(AUTH_TOKEN_KEY) or None

    def set_token(self, token: str) -> None:
        if not token:
            self.clear_token()
            return
        self._data[AUTH_TOKEN_KEY] = token

    def clear_token(self) -> None:
        self._data.pop(AUTH_TOKEN_KEY, None)


class FileTokenStore(TokenStore):
    """JSON file key-value store holding the ``auth_token`` entry"""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Token storage unreadable, treating as empty", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _atomic_write(self, payload: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8"
        ) as tf:
            json.dump(payload, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)
        try:
            shutil.move(str(temp_path), str(self.path))
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def get_token(self) -> Optional[str]:
        with self._lock:
            token = self._load().get(AUTH_TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        if not token:
            self.clear_token()
            return
        with self._lock:
            data = self._load()
            data[AUTH_TOKEN_KEY] = token
            self._atomic_write(data)
        logger.debug("Auth token stored", path=str(self.path))

    def clear_token(self) -> None:
        with self._lock:
            data = self._load()
            if AUTH_TOKEN_KEY not in data:
                return
            del data[AUTH_TOKEN_KEY]
            self._atomic_write(data)
        logger.debug("Auth token removed", path=str(self.path))
