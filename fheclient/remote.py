"""Remote session protocol.

Talks to an untrusted HTTP relayer that encrypts, decrypts and optionally
submits transactions on the caller's behalf. Every read and mutate is a
signed request bound to the session id and a strictly advancing nonce:

    ZAMA_FHE_REQUEST:<sessionId>:<functionName>:<JSON(values)>:<nonce>

Session lifecycle:
    UNINITIALIZED -> CREATED -> [AUTHORIZATION_PENDING -> AUTHORIZED] -> ACTIVE
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .chain import ContractGateway
from .errors import (
    MissingSignerError,
    ModeNotSupportedError,
    ProtocolViolationError,
    RelayerError,
    SessionNotActiveError,
    UnsupportedSignerError,
)
from .models import (
    AuthorizeResponse,
    ClientSignInstruction,
    ContractDescriptor,
    MutateResult,
    MutateSettled,
    ReadResponse,
    ReadResult,
    SessionAuthorization,
    SessionResponse,
    SignedRequest,
)
from .settings import get_setting, get_setting_float
from .signer import Signer, supports_typed_data

logger = logging.getLogger(__name__)

SESSIONS_PATH = "/v1/sessions"
AUTHORIZE_PATH = "/v1/sessions/authorize"
READ_PATH = "/v1/fhe/read"
MUTATE_PATH = "/v1/fhe/mutate"

AUTH_MESSAGE_PREFIX = "ZAMA_FHE_REQUEST"
EIP712_AUTHORIZATION = "eip712"
PENDING_SIGNATURE = "pending_signature"
CLIENT_SIGN_MODE = "client-sign"

DEFAULT_HEADERS = {
    "user-agent": "fheclient-SDK/0.1",
    "content-type": "application/json",
}

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_auth_message(session_id: str, function_name: str, values: Sequence[Any] | None, nonce: int) -> str:
    """Canonical message signed for every relayer request.

    Values are serialized as compact JSON (no spaces) so the relayer can
    rebuild the exact same string.
    """
    encoded = json.dumps(list(values or []), separators=(",", ":"), ensure_ascii=False)
    return f"{AUTH_MESSAGE_PREFIX}:{session_id}:{function_name}:{encoded}:{nonce}"


@dataclass
class RelayerOptions:
    """Relayer connection options; unset fields fall back to settings."""

    base_url: str | None = None
    api_key: str | None = None
    timeout: float | None = None

    def resolved_base_url(self) -> str:
        return (self.base_url or get_setting("relayer.base_url")).rstrip("/")

    def resolved_api_key(self) -> str | None:
        return self.api_key or get_setting("relayer.api_key") or None

    def resolved_timeout(self) -> float:
        if self.timeout is not None:
            return self.timeout
        return get_setting_float("relayer.timeout_seconds", fallback=30.0)


class RelayerTransport:
    """JSON-over-POST client for the relayer API."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Create a transport.

        Args:
            base_url: Relayer base URL
            api_key: Sent as ``x-relayer-key`` when set
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        headers = dict(DEFAULT_HEADERS)
        if api_key:
            headers["x-relayer-key"] = api_key
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def post(self, path: str, body: dict[str, Any]) -> Any:
        """POST *body* to *path* and return the decoded JSON body.

        Any 2xx answer is returned as decoded (an empty dict if it is not
        JSON); callers check its shape.

        Raises:
            RelayerError: On non-2xx status or transport failure
        """
        try:
            response = await self._client.post(f"{self.base_url}{path}", json=body)
        except httpx.HTTPError as e:
            raise RelayerError(f"Relayer request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            error = payload.get("error") if isinstance(payload, dict) else None
            message = error if isinstance(error, str) else response.reason_phrase
            logger.warning(f"Relayer {path} returned {response.status_code}: {message}")
            raise RelayerError(message, status_code=response.status_code)

        return payload

    async def aclose(self) -> None:
        await self._client.aclose()


class SessionPhase(Enum):
    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    AUTHORIZATION_PENDING = "authorization_pending"
    AUTHORIZED = "authorized"
    ACTIVE = "active"


@dataclass
class SessionState:
    """Mutable state of one relayer session.

    The nonce only moves through ``complete_authorization`` (before the
    session is active) and ``advance_nonce`` (after each answered request).
    """

    session_id: str
    nonce: int
    authorization_public_key: str | None = None
    phase: SessionPhase = SessionPhase.CREATED

    def begin_authorization(self, public_key: str | None) -> None:
        self.authorization_public_key = public_key
        self.phase = SessionPhase.AUTHORIZATION_PENDING

    def complete_authorization(self, nonce: int | None) -> None:
        if nonce is not None:
            self.nonce = nonce
        self.phase = SessionPhase.AUTHORIZED

    def activate(self) -> None:
        self.phase = SessionPhase.ACTIVE

    def advance_nonce(self, used: int, next_nonce: Any = None) -> int:
        """Move past *used*: adopt the relayer's ``nextNonce`` or add one.

        A ``nextNonce`` that is not an integer greater than *used* is ignored
        with a warning. The answer it came with is still valid (a mutate may
        already be settled on chain).
        """
        if isinstance(next_nonce, int) and not isinstance(next_nonce, bool) and next_nonce > used:
            self.nonce = next_nonce
        else:
            if next_nonce is not None:
                logger.warning(
                    f"Ignoring relayer nextNonce={next_nonce!r} after nonce {used}; using {used + 1}"
                )
            self.nonce = used + 1
        logger.debug(f"Session {self.session_id[:8]}... nonce {used} -> {self.nonce}")
        return self.nonce


def _parse(model: type[ModelT], payload: Any, path: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolViolationError(f"Unexpected response from relayer {path}: {e}") from e


class RemoteSession:
    """One relayer session for a (contract, signer) pair.

    Signed requests are serialized with a per-session lock, so the nonce of
    a request is always read after the previous request's answer has
    advanced it.

    Example:
        session = RemoteSession(contract, signer, options=RelayerOptions(api_key="..."))
        await session.open()
        result = await session.mutate("increment", [1])
    """

    def __init__(
        self,
        contract: ContractDescriptor,
        signer: Signer | None,
        gateway: ContractGateway | None = None,
        options: RelayerOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Create an unopened session.

        Args:
            contract: Target contract
            signer: Signer authenticating every request
            gateway: Contract bound to the signer, used for client-sign mutates
            options: Relayer connection options
            transport: Optional httpx transport for the relayer client

        Raises:
            MissingSignerError: If no signer is given
        """
        if signer is None:
            raise MissingSignerError("Remote mode requires a signer to authorize requests.")
        self.contract = contract
        self.signer = signer
        self.gateway = gateway
        options = options or RelayerOptions()
        self.base_url = options.resolved_base_url()
        self._transport = RelayerTransport(
            self.base_url,
            api_key=options.resolved_api_key(),
            timeout=options.resolved_timeout(),
            transport=transport,
        )
        self._state: SessionState | None = None
        self._lock = asyncio.Lock()

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase if self._state else SessionPhase.UNINITIALIZED

    @property
    def session_id(self) -> str | None:
        return self._state.session_id if self._state else None

    @property
    def nonce(self) -> int | None:
        return self._state.nonce if self._state else None

    @property
    def authorization_public_key(self) -> str | None:
        return self._state.authorization_public_key if self._state else None

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "relayer_base_url": self.base_url,
            "session_id": self.session_id,
            "authorization_public_key": self.authorization_public_key,
        }

    async def open(self) -> SessionState:
        """Create the relayer session, running the EIP-712 handshake if asked.

        Calling it again returns the already active session.

        Raises:
            UnsupportedSignerError: If authorization is required and the signer
                cannot sign typed data
            RelayerError: If the relayer rejects a request
            ProtocolViolationError: If a response has an unknown shape
        """
        async with self._lock:
            if self._state is not None and self._state.phase is SessionPhase.ACTIVE:
                return self._state

            user_address = await self.signer.get_address()
            payload = await self._transport.post(
                SESSIONS_PATH,
                {
                    "contractAddress": self.contract.address,
                    "abi": self.contract.abi,
                    "userAddress": user_address,
                },
            )
            created = _parse(SessionResponse, payload, SESSIONS_PATH)
            state = SessionState(session_id=created.session_id, nonce=created.nonce)
            logger.info(f"Relayer session {state.session_id[:8]}... created (status={created.status})")

            if created.authorization is not None:
                await self._authorize(state, created.authorization)
            elif created.status == PENDING_SIGNATURE:
                raise ProtocolViolationError(
                    "Relayer requested a signature without an authorization payload"
                )

            state.activate()
            self._state = state
            return state

    async def _authorize(self, state: SessionState, authorization: SessionAuthorization) -> None:
        if authorization.type != EIP712_AUTHORIZATION:
            raise ProtocolViolationError(f"Unsupported session authorization type: {authorization.type}")
        if not supports_typed_data(self.signer):
            raise UnsupportedSignerError(
                "Signer does not support sign_typed_data required for FHE relayer authorization"
            )

        state.begin_authorization(authorization.public_key)
        typed_data = authorization.typed_data
        signature = await self.signer.sign_typed_data(
            typed_data.domain, typed_data.types, typed_data.message
        )
        payload = await self._transport.post(
            AUTHORIZE_PATH,
            {"sessionId": state.session_id, "signature": signature},
        )
        authorized = _parse(AuthorizeResponse, payload, AUTHORIZE_PATH)
        state.complete_authorization(authorized.nonce)
        logger.info(f"Relayer session {state.session_id[:8]}... authorized")

    async def signed_request(self, path: str, function_name: str, values: Sequence[Any]) -> dict[str, Any]:
        """Sign and POST one nonce-bound request.

        The nonce advances only once the relayer has answered with 2xx; on
        any failure it is left untouched so a retry reuses it.
        """
        async with self._lock:
            state = self._state
            if state is None or state.phase is not SessionPhase.ACTIVE:
                raise SessionNotActiveError("Relayer session is not open; call open() first")

            used = state.nonce
            message = build_auth_message(state.session_id, function_name, values, used)
            signature = await self.signer.sign_message(message)
            request = SignedRequest(
                session_id=state.session_id,
                function_name=function_name,
                values=list(values),
                signature=signature,
                nonce=used,
            )
            payload = await self._transport.post(path, request.to_body())
            # the relayer has consumed the nonce once it answers 2xx
            next_nonce = payload.get("nextNonce") if isinstance(payload, dict) else None
            state.advance_nonce(used, next_nonce)

        if not isinstance(payload, dict):
            raise ProtocolViolationError(f"Relayer {path} returned a non-object body")
        return payload

    async def read(self, function_name: str | None = None, args: Sequence[Any] = ()) -> ReadResult:
        """Read a value the relayer decrypts and discloses.

        *args* are the view's arguments, signed and sent as ``values``.
        """
        function_name = function_name or get_setting("client.default_read_function")
        payload = await self.signed_request(READ_PATH, function_name, list(args))
        response = _parse(ReadResponse, payload, READ_PATH)
        return ReadResult(handle=response.handle, value=response.value)

    async def mutate(self, function_name: str, values: Sequence[Any]) -> MutateResult:
        """Ask the relayer to encrypt *values* and run *function_name*.

        Raises:
            ProtocolViolationError: If the response is neither settled nor client-sign
            MissingSignerError: If client-sign is requested without a gateway
        """
        payload = await self.signed_request(MUTATE_PATH, function_name, values)

        if "txHash" in payload:
            settled = _parse(MutateSettled, payload, MUTATE_PATH)
            logger.info(f"Relayer settled {function_name} in block {settled.block_number}")
            return MutateResult(tx_hash=settled.tx_hash, block_number=settled.block_number)

        if payload.get("mode") == CLIENT_SIGN_MODE:
            instruction = _parse(ClientSignInstruction, payload, MUTATE_PATH)
            return await self._client_sign(function_name, instruction.params)

        raise ProtocolViolationError("Unexpected response from relayer mutate endpoint")

    async def decrypt_handle(self, handle: str) -> str:
        raise ModeNotSupportedError(
            "The relayer only discloses values through read(); decrypting handles needs local mode"
        )

    async def _client_sign(self, function_name: str, params: list[Any]) -> MutateResult:
        if self.gateway is None:
            raise MissingSignerError(
                f"Relayer asked to client-sign {function_name} but no contract gateway is configured"
            )
        result = await self.gateway.transact(function_name, *params)
        logger.info(f"Client-signed {function_name} mined in block {result.block_number}")
        return result

    async def aclose(self) -> None:
        await self._transport.aclose()
