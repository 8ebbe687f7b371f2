"""
Token persistence backends.

A token store is a passive mirror of the driver's in-memory token pair: it is
read once when a gateway is created and written after every successful refresh.
"""

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from apaleo_connect_mcp.models.common import TokenPair

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Load/save capability for a token pair."""

    @abstractmethod
    async def load(self) -> TokenPair | None:
        """Return the persisted token pair, or None when nothing is stored."""

    @abstractmethod
    async def save(self, tokens: TokenPair) -> None:
        """Persist ``tokens``, replacing any previous pair."""


class MemoryTokenStore(TokenStore):
    """Keeps the last saved pair in process memory."""

    def __init__(self, tokens: TokenPair | None = None) -> None:
        self._tokens = tokens
        self.save_count = 0

    async def load(self) -> TokenPair | None:
        return self._tokens

    async def save(self, tokens: TokenPair) -> None:
        self._tokens = tokens
        self.save_count += 1


class JsonFileTokenStore(TokenStore):
    """
    Stores the token pair as a JSON document on disk.

    Writes are serialized and go to a unique sibling temp file which is then
    renamed over the target, so a crash mid-write never leaves a truncated
    token file behind. The file is created with owner-only permissions.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._write_lock = asyncio.Lock()

    async def load(self) -> TokenPair | None:
        return await asyncio.to_thread(self._read)

    async def save(self, tokens: TokenPair) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._write, tokens)
        logger.debug(f"Token pair written to {self.path}")

    def _read(self) -> TokenPair | None:
        if not self.path.exists():
            return None
        try:
            return TokenPair.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable token file {self.path}: {e}")
            return None

    def _write(self, tokens: TokenPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates a unique 0600 file, so writers never share a temp path
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(tokens.model_dump_json())
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
