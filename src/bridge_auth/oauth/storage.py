"""Credential records and the key-value stores that hold them.

Credentials are serialized to JSON with a ``token_type`` tag so the two
variants (OAuth and personal access token) can be told apart on load.

Note: Tokens are stored in plaintext. ``FileKeyValueStore`` protects them
with restrictive file permissions (0o600) only.
"""

from __future__ import annotations

import asyncio
import json
import math
import os
import tempfile
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from hashlib import sha256
from pathlib import Path
from typing import Any, Protocol, Union

from ..errors import PersistenceError, TokenError, TokenErrorCode


@dataclass(frozen=True)
class OAuthCredential:
    """Token obtained through the OAuth authorization flow."""

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None  # Unix timestamp, None if the token never expires
    refresh_token_expires_at: int | None = None
    token_type: str = "oauth"

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now().timestamp() >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PersonalAccessCredential:
    """Personal access token registered directly by the user."""

    access_token: str
    token_type: str = "pat"

    @property
    def is_expired(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


Credential = Union[OAuthCredential, PersonalAccessCredential]


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TokenError(TokenErrorCode.MALFORMED, f"Credential field '{key}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise TokenError(TokenErrorCode.MALFORMED, f"Credential field '{key}' must be finite")
    return int(value)


def parse_credential(payload: str | dict[str, Any]) -> Credential:
    """Build a credential from its stored form.

    Raises:
        TokenError: MALFORMED if the payload does not match either variant
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise TokenError(TokenErrorCode.MALFORMED, f"Credential is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise TokenError(TokenErrorCode.MALFORMED, "Credential must be an object")

    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise TokenError(TokenErrorCode.MALFORMED, "Credential has no access_token")

    token_type = payload.get("token_type")
    if token_type == "pat":
        return PersonalAccessCredential(access_token=access_token)
    if token_type == "oauth":
        refresh_token = payload.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise TokenError(TokenErrorCode.MALFORMED, "Credential field 'refresh_token' must be a string")
        return OAuthCredential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=_optional_int(payload, "expires_at"),
            refresh_token_expires_at=_optional_int(payload, "refresh_token_expires_at"),
        )

    raise TokenError(TokenErrorCode.MALFORMED, f"Unknown token_type: {token_type!r}")


def serialize_credential(credential: Credential) -> str:
    """Encode a credential for the key-value store."""
    return json.dumps(credential.to_dict())


class KeyValueStore(Protocol):
    """Persistence used by the token store.

    Implementations must replace values whole, so a reader never sees a
    partially written value.
    """

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store, used in tests and for ephemeral bridges."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """Stores each value in its own file under ``directory``.

    Writes go to a temporary file that is renamed over the target, so
    concurrent readers see either the old or the new value.

    Usage:
        store = FileKeyValueStore("data/tokens")
        await store.set("github:@alice:example.org", payload)
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> Path:
        # Keys contain user ids, which are not safe file names
        return self.directory / f"{sha256(key.encode()).hexdigest()}.json"

    def _read(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            with open(path) as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read {path}: {e}")

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            with self._lock:
                self.directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
                try:
                    with os.fdopen(fd, "w") as f:
                        f.write(value)
                    os.chmod(tmp_name, 0o600)
                    os.replace(tmp_name, path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}")

    def _delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            with self._lock:
                path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not delete {path}: {e}")

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)
