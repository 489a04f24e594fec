"""ABI encryption marshaler.

Turns a logical function call into the literal, ABI-ordered argument list a
confidential contract expects, given the handles and proof produced by the
encryption engine.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Sequence

from .errors import EncryptedInputMismatchError, FunctionNotFoundError
from .models import EncryptedInputResult

logger = logging.getLogger(__name__)

EXTERNAL_PREFIX = "externalE"
ONCHAIN_PREFIX = "euint"
INPUT_PROOF_NAME = "inputProof"


class EncryptionMethod(str, Enum):
    """Encrypted-input builder method for each encrypted type."""

    BOOL = "add_bool"
    UINT8 = "add8"
    UINT16 = "add16"
    UINT32 = "add32"
    UINT64 = "add64"
    UINT128 = "add128"
    UINT256 = "add256"
    ADDRESS = "add_address"


_METHODS_BY_TYPE: dict[str, EncryptionMethod] = {
    "externalEbool": EncryptionMethod.BOOL,
    "externalEuint8": EncryptionMethod.UINT8,
    "externalEuint16": EncryptionMethod.UINT16,
    "externalEuint32": EncryptionMethod.UINT32,
    "externalEuint64": EncryptionMethod.UINT64,
    "externalEuint128": EncryptionMethod.UINT128,
    "externalEuint256": EncryptionMethod.UINT256,
    "externalEaddress": EncryptionMethod.ADDRESS,
}


def classify_encryption_method(internal_type: str) -> EncryptionMethod:
    """Return the builder method for an ABI internal type.

    Unknown types fall back to the 64-bit builder with a warning instead of
    failing, so a type added upstream does not break existing calls.
    """
    method = _METHODS_BY_TYPE.get(internal_type)
    if method is None:
        logger.warning(f"Unknown internalType: {internal_type}, defaulting to {EncryptionMethod.UINT64.value}")
        return EncryptionMethod.UINT64
    return method


def is_encrypted_type(internal_type: str) -> bool:
    """True for on-chain (``euint*``) and external (``externalE*``) encrypted types."""
    return internal_type.startswith(ONCHAIN_PREFIX) or internal_type.startswith(EXTERNAL_PREFIX)


def is_input_proof(param: dict[str, Any]) -> bool:
    return param.get("type") == "bytes" and param.get("name") == INPUT_PROOF_NAME


def to_canonical_hex(value: bytes | bytearray | memoryview | str) -> str:
    """Normalize bytes or a hex string to a 0x-prefixed hex string.

    Idempotent: strings that already carry the prefix are returned unchanged.
    """
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return "0x" + bytes(value).hex()


def find_function_fragment(abi: Sequence[dict[str, Any]], function_name: str) -> dict[str, Any]:
    """Return the first function fragment named *function_name*.

    Raises:
        FunctionNotFoundError: If the ABI declares no such function
    """
    for item in abi:
        if item.get("type", "function") == "function" and item.get("name") == function_name:
            return item
    raise FunctionNotFoundError(f"Function ABI not found for {function_name}")


class _HandlePhase(Enum):
    AWAITING_HANDLE = "awaiting_handle"
    AWAITING_PROOF_ONLY = "awaiting_proof_only"


class _HandleCursor:
    """Threads one encrypted result through a single call's parameters.

    The first external-encrypted parameter takes handle 0 and moves the
    cursor to AWAITING_PROOF_ONLY; every later external-encrypted parameter
    receives the proof. On-chain ``euint*`` parameters always take the
    handle under the cursor.
    """

    def __init__(self, encrypted: EncryptedInputResult, function_name: str):
        self._encrypted = encrypted
        self._function_name = function_name
        self.index = 0
        self.phase = _HandlePhase.AWAITING_HANDLE

    def proof(self) -> str:
        return to_canonical_hex(self._encrypted.input_proof)

    def external(self) -> str:
        if self.phase is _HandlePhase.AWAITING_PROOF_ONLY:
            return self.proof()
        handle = self._handle_at(0)
        self.index = max(self.index, 1)
        self.phase = _HandlePhase.AWAITING_PROOF_ONLY
        return handle

    def onchain(self) -> str:
        handle = self._handle_at(self.index)
        self.index += 1
        return handle

    def _handle_at(self, index: int) -> str:
        handles = self._encrypted.handles
        if index >= len(handles):
            raise EncryptedInputMismatchError(
                f"{self._function_name} needs handle #{index} but the encrypted input "
                f"carries {len(handles)}"
            )
        return to_canonical_hex(handles[index])


def build_call_arguments(
    encrypted: EncryptedInputResult,
    abi: Sequence[dict[str, Any]],
    function_name: str,
    original_args: Sequence[Any] | None = None,
) -> list[Any]:
    """Build the ABI-ordered argument list for *function_name*.

    Args:
        encrypted: Handles and proof from the encryption engine
        abi: Contract ABI
        function_name: Function to call
        original_args: Logical arguments, indexed by ABI input position

    Returns:
        One value per declared input, in declaration order

    Raises:
        FunctionNotFoundError: If the ABI declares no such function
        EncryptedInputMismatchError: If a needed handle is missing
    """
    fragment = find_function_fragment(abi, function_name)
    inputs = fragment.get("inputs") or []
    cursor = _HandleCursor(encrypted, function_name)

    def original(index: int) -> Any:
        if original_args is None or index >= len(original_args):
            return None
        return original_args[index]

    logger.debug(
        f"Marshaling {function_name}: {len(inputs)} inputs, {len(encrypted.handles)} handles"
    )

    args: list[Any] = []
    for index, param in enumerate(inputs):
        internal_type = param.get("internalType") or ""

        # inputProof is never an encrypted value itself
        if is_input_proof(param):
            args.append(cursor.proof())
        elif internal_type.startswith(EXTERNAL_PREFIX):
            args.append(cursor.external())
        elif internal_type.startswith(ONCHAIN_PREFIX):
            args.append(cursor.onchain())
        else:
            args.append(original(index))

        logger.debug(f"  {index} {param.get('name', '')} ({internal_type or param.get('type')})")

    return args
