"""Local call controller.

Drives confidential contracts directly: encrypts inputs with the engine,
submits transactions through the caller's signer and decrypts handles
with a decryption authorization.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Sequence

from .chain import ContractGateway
from .engine import AuthorizationLoader, EngineLoader, InMemoryStorage
from .errors import DecryptionAuthorizationError, EmptyDecryptResultError
from .marshal import (
    build_call_arguments,
    classify_encryption_method,
    find_function_fragment,
    is_encrypted_type,
    is_input_proof,
    to_canonical_hex,
)
from .models import ContractDescriptor, EncryptedInputResult, MutateResult, ReadResult
from .settings import get_setting
from .signer import Signer

logger = logging.getLogger(__name__)

ZERO_HANDLE = "0x" + "00" * 32


def is_zero_handle(handle: str) -> bool:
    """True for the all-zero handle, which stands for an uninitialized (zero) value."""
    return handle.lower() == ZERO_HANDLE


def _cleartext(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class LocalCallController:
    """Reads and writes a confidential contract without a relayer."""

    def __init__(
        self,
        contract: ContractDescriptor,
        signer: Signer,
        gateway: ContractGateway,
        engine: EngineLoader,
        load_or_sign: AuthorizationLoader,
        storage: InMemoryStorage | None = None,
    ):
        """Create a controller.

        Args:
            contract: Target contract
            signer: Caller's signer
            gateway: Contract bound to the signer
            engine: Engine loader owned by this controller
            load_or_sign: Collaborator returning a decryption authorization
            storage: Storage handed to load_or_sign (a fresh one by default)
        """
        self.contract = contract
        self.signer = signer
        self.gateway = gateway
        self.engine = engine
        self.load_or_sign = load_or_sign
        self.storage = storage if storage is not None else InMemoryStorage()

    @property
    def metadata(self) -> dict[str, Any]:
        return {}

    async def read(self, function_name: str | None = None, args: Sequence[Any] = ()) -> ReadResult:
        """Call a view returning a handle and decrypt it.

        *args* are passed to the view, e.g. the account for
        ``confidentialBalanceOf``.

        The zero handle short-circuits to ``"0"`` without touching the engine.

        Raises:
            DecryptionAuthorizationError: If no authorization could be obtained
            EmptyDecryptResultError: If the engine returns nothing for the handle
        """
        function_name = function_name or get_setting("client.default_read_function")
        raw = await self.gateway.call(function_name, *args)
        handle = to_canonical_hex(raw)
        value = await self.decrypt_handle(handle)
        return ReadResult(handle=handle, value=value)

    async def decrypt_handle(self, handle: str) -> str:
        """Decrypt *handle* for this contract and return its cleartext."""
        if is_zero_handle(handle):
            return "0"

        engine = await self.engine.get()
        address = self.contract.address
        authorization = await self.load_or_sign(engine, [address], self.signer, self.storage)
        if authorization is None:
            raise DecryptionAuthorizationError("Unable to create FHE decryption signature")

        results = await engine.user_decrypt(
            [{"handle": handle, "contractAddress": address}],
            authorization.private_key,
            authorization.public_key,
            authorization.signature,
            authorization.contract_addresses,
            authorization.user_address,
            authorization.start_timestamp,
            authorization.duration_days,
        )
        clear = results.get(handle)
        if clear is None:
            raise EmptyDecryptResultError(f"Empty decrypt result for handle {handle[:10]}...")
        return _cleartext(clear)

    async def encrypt_arguments(self, function_name: str, values: Sequence[Any]) -> list[Any]:
        """Encrypt the encrypted-typed inputs of *function_name* and build its arguments.

        Raises:
            FunctionNotFoundError: If the ABI declares no such function
        """
        fragment = find_function_fragment(self.contract.abi, function_name)
        engine = await self.engine.get()
        user_address = await self.signer.get_address()
        builder = engine.create_encrypted_input(self.contract.address, user_address)

        for index, param in enumerate(fragment.get("inputs") or []):
            internal_type = param.get("internalType") or ""
            if is_input_proof(param) or not is_encrypted_type(internal_type):
                continue
            method = classify_encryption_method(internal_type)
            value = values[index] if index < len(values) else None
            if value is None:
                value = 0
            getattr(builder, method.value)(value)

        encrypted = builder.encrypt()
        if inspect.isawaitable(encrypted):
            encrypted = await encrypted
        result = EncryptedInputResult.coerce(encrypted)
        return build_call_arguments(result, self.contract.abi, function_name, values)

    async def mutate(self, function_name: str, values: Sequence[Any]) -> MutateResult:
        """Encrypt, submit and wait for *function_name*."""
        args = await self.encrypt_arguments(function_name, values)
        result = await self.gateway.transact(function_name, *args)
        logger.info(f"{function_name} mined in block {result.block_number}")
        return result

    async def aclose(self) -> None:
        self.engine.cancel()
