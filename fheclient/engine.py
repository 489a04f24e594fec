"""Encryption-engine contracts and the per-client engine lifecycle.

The FHE engine itself (ciphertext and proof generation, user decryption)
lives outside this package; fheclient only talks to it through the
protocols below.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol

from .errors import EngineCancelledError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class EncryptedInputBuilder(Protocol):
    """Collects cleartext values for one call, then encrypts them together.

    One ``add*`` method per EncryptionMethod; ``encrypt`` returns an
    EncryptedInputResult or a ``{"handles", "inputProof"}`` mapping.
    """

    def add_bool(self, value: Any) -> Any: ...

    def add8(self, value: Any) -> Any: ...

    def add16(self, value: Any) -> Any: ...

    def add32(self, value: Any) -> Any: ...

    def add64(self, value: Any) -> Any: ...

    def add128(self, value: Any) -> Any: ...

    def add256(self, value: Any) -> Any: ...

    def add_address(self, value: Any) -> Any: ...

    async def encrypt(self) -> Any: ...


class EncryptionEngine(Protocol):
    """FHE engine instance bound to one chain."""

    def create_encrypted_input(self, contract_address: str, user_address: str) -> EncryptedInputBuilder: ...

    async def user_decrypt(
        self,
        handles: list[dict[str, str]],
        private_key: str,
        public_key: str,
        signature: str,
        contract_addresses: list[str],
        user_address: str,
        start_timestamp: int,
        duration_days: int,
    ) -> dict[str, Any]: ...


@dataclass
class DecryptionAuthorization:
    """Signed capability letting a user decrypt handles of a contract set."""

    private_key: str
    public_key: str
    signature: str
    contract_addresses: list[str]
    user_address: str
    start_timestamp: int
    duration_days: int

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> DecryptionAuthorization:
        """Build from the collaborator's camelCase payload."""
        return cls(
            private_key=data["privateKey"],
            public_key=data["publicKey"],
            signature=data["signature"],
            contract_addresses=list(data["contractAddresses"]),
            user_address=data["userAddress"],
            start_timestamp=int(data["startTimestamp"]),
            duration_days=int(data["durationDays"]),
        )

    @property
    def expires_at(self) -> int:
        return self.start_timestamp + self.duration_days * SECONDS_PER_DAY

    def is_valid(self, now: float | None = None) -> bool:
        """Check the validity window against *now* (defaults to the current time)."""
        now = time.time() if now is None else now
        return self.start_timestamp <= now < self.expires_at


@dataclass
class InMemoryStorage:
    """String key/value store handed to the authorization collaborator."""

    _items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


# (engine, contract_addresses, signer, storage) -> authorization or None
AuthorizationLoader = Callable[
    [EncryptionEngine, list[str], Any, InMemoryStorage],
    Awaitable[DecryptionAuthorization | None],
]

EngineFactory = Callable[[], Awaitable[EncryptionEngine]]


class EngineLoader:
    """Owns the single, cancellable engine initialization of one client.

    Initialization starts on ``start()`` (or the first ``get()``) and is
    shared by every caller. Once ``cancel()`` has been called, ``get()``
    always raises EngineCancelledError, even if the engine had finished
    loading.
    """

    def __init__(self, factory: EngineFactory):
        self._factory = factory
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Begin initialization in the running event loop (idempotent)."""
        if self._cancelled:
            raise EngineCancelledError("Encryption engine initialization was cancelled")
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
            self._task.add_done_callback(self._log_failure)
            logger.debug("Encryption engine initialization started")

    @staticmethod
    def _log_failure(task: asyncio.Future) -> None:
        # marks the exception as retrieved
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Encryption engine initialization failed: {task.exception()}")

    async def get(self) -> EncryptionEngine:
        """Wait for the engine.

        Raises:
            EngineCancelledError: If initialization was cancelled
        """
        self.start()
        try:
            # shield: one caller giving up must not cancel the shared init
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._cancelled:
                raise EngineCancelledError("Encryption engine initialization was cancelled") from None
            raise

    def cancel(self) -> None:
        """Cancel initialization; further ``get()`` calls fail."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("Encryption engine initialization cancelled")
