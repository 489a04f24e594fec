"""Data models for the confidential call client.

Wire models mirror the relayer's camelCase JSON through field aliases;
results handed back to callers are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContractDescriptor(BaseModel):
    """Target contract of every call made by a client."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="0x-prefixed contract address")
    abi: list[dict[str, Any]] = Field(default_factory=list, description="Contract ABI fragments")
    name: str | None = Field(default=None, description="Optional human-readable name")


@dataclass
class EncryptedInputResult:
    """Handles plus proof produced by one encryption-engine builder.

    Consumed once to build call arguments; never reused across calls.
    """

    handles: list[bytes | str]
    input_proof: bytes | str

    @classmethod
    def coerce(cls, value: Any) -> EncryptedInputResult:
        """Accept an instance, a ``{"handles", "inputProof"}`` mapping, or an object."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            proof = value.get("inputProof", value.get("input_proof"))
            return cls(handles=list(value["handles"]), input_proof=proof)
        proof = getattr(value, "input_proof", None)
        if proof is None:
            proof = getattr(value, "inputProof")
        return cls(handles=list(value.handles), input_proof=proof)


@dataclass
class ReadResult:
    """Encrypted handle and its cleartext value."""

    handle: str
    value: str


@dataclass
class MutateResult:
    """Settled transaction."""

    tx_hash: str
    block_number: int


@dataclass
class BatchCall:
    """One entry of a batch mutate."""

    function_name: str
    values: list[Any] = field(default_factory=list)
    id: str | None = None


@dataclass
class BatchResult:
    """Outcome of one batch entry; exactly one of result/error is set."""

    id: str | None
    success: bool
    result: MutateResult | None = None
    error: Exception | None = None


# Relayer wire models


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TypedDataPayload(_WireModel):
    """EIP-712 payload the relayer asks the user to sign."""

    domain: dict[str, Any]
    types: dict[str, list[dict[str, str]]]
    primary_type: str | None = Field(default=None, alias="primaryType")
    message: dict[str, Any]


class SessionAuthorization(_WireModel):
    """Decryption authorization request attached to a new session."""

    type: str
    public_key: str | None = Field(default=None, alias="publicKey")
    start_timestamp: int | None = Field(default=None, alias="startTimestamp")
    duration_days: int | None = Field(default=None, alias="durationDays")
    contract_addresses: list[str] = Field(default_factory=list, alias="contractAddresses")
    typed_data: TypedDataPayload = Field(..., alias="typedData")


class SessionResponse(_WireModel):
    """Response of ``POST /v1/sessions``."""

    session_id: str = Field(..., alias="sessionId")
    nonce: int = 0
    status: str | None = None
    authorization: SessionAuthorization | None = None

    @field_validator("nonce", mode="before")
    @classmethod
    def _default_nonce(cls, value: Any) -> Any:
        return 0 if value is None else value


class AuthorizeResponse(_WireModel):
    """Response of ``POST /v1/sessions/authorize``."""

    status: str | None = None
    nonce: int | None = None


class SignedRequest(_WireModel):
    """Body of every nonce-ordered, signed relayer request."""

    session_id: str = Field(..., alias="sessionId")
    function_name: str = Field(..., alias="functionName")
    values: list[Any] = Field(default_factory=list)
    signature: str
    nonce: int

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ReadResponse(_WireModel):
    """Response of ``POST /v1/fhe/read``; value is already disclosed."""

    handle: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class MutateSettled(_WireModel):
    """Mutate response for a transaction the relayer already submitted."""

    tx_hash: str = Field(..., alias="txHash")
    block_number: int = Field(..., alias="blockNumber")


class ClientSignInstruction(_WireModel):
    """Mutate response asking the caller to submit the transaction itself."""

    mode: Literal["client-sign"]
    params: list[Any]
