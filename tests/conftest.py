"""Pytest configuration and fixtures for fheclient tests."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from fheclient.engine import DecryptionAuthorization
from fheclient.models import ContractDescriptor, MutateResult

USER_ADDRESS = "0x1111111111111111111111111111111111111111"
COUNTER_ADDRESS = "0x2222222222222222222222222222222222222222"
RELAYER_URL = "https://relayer.test"

COUNTER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getCount",
        "inputs": [],
        "outputs": [{"internalType": "euint32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "increment",
        "inputs": [
            {"internalType": "externalEuint32", "name": "inputEuint32", "type": "bytes32"},
            {"internalType": "bytes", "name": "inputProof", "type": "bytes"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "decrement",
        "inputs": [
            {"internalType": "externalEuint32", "name": "inputEuint32", "type": "bytes32"},
            {"internalType": "bytes", "name": "inputProof", "type": "bytes"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

HANDLE_1 = b"\x01" * 32
HANDLE_2 = b"\x02" * 32
PROOF = b"\xaa\xbb\xcc"


class FakeSigner:
    """personal_sign-only signer recording every message it signs."""

    def __init__(self, address: str = USER_ADDRESS):
        self.address = address
        self.messages: list[str] = []

    async def get_address(self) -> str:
        return self.address

    async def sign_message(self, message: str) -> str:
        self.messages.append(message)
        return f"0xsig{len(self.messages)}"


class FakeTypedDataSigner(FakeSigner):
    """Signer that can also sign EIP-712 typed data."""

    def __init__(self, address: str = USER_ADDRESS):
        super().__init__(address)
        self.typed_data: list[tuple[dict, dict, dict]] = []

    async def sign_typed_data(self, domain, types, message) -> str:
        self.typed_data.append((domain, types, message))
        return "0xtyped"


class FakeGateway:
    """Contract gateway returning canned view results and recording transactions."""

    def __init__(self, views: dict[str, Any] | None = None):
        self.views = views or {}
        self.calls: list[tuple[str, tuple]] = []
        self.transactions: list[tuple[str, tuple]] = []

    async def call(self, function_name: str, *args: Any) -> Any:
        self.calls.append((function_name, args))
        return self.views[function_name]

    async def transact(self, function_name: str, *args: Any) -> MutateResult:
        self.transactions.append((function_name, args))
        return MutateResult(tx_hash="0x" + "ab" * 32, block_number=42)


class FakeBuilder:
    """Encrypted-input builder producing one fixed handle per added value."""

    def __init__(self):
        self.added: list[tuple[str, Any]] = []

    def _add(self, method: str, value: Any) -> FakeBuilder:
        self.added.append((method, value))
        return self

    def add_bool(self, value):
        return self._add("add_bool", value)

    def add8(self, value):
        return self._add("add8", value)

    def add16(self, value):
        return self._add("add16", value)

    def add32(self, value):
        return self._add("add32", value)

    def add64(self, value):
        return self._add("add64", value)

    def add128(self, value):
        return self._add("add128", value)

    def add256(self, value):
        return self._add("add256", value)

    def add_address(self, value):
        return self._add("add_address", value)

    async def encrypt(self) -> dict[str, Any]:
        handles = [bytes([index + 1]) * 32 for index in range(len(self.added))]
        return {"handles": handles, "inputProof": PROOF}


class FakeEngine:
    """Encryption engine with a canned decryption table."""

    def __init__(self, decrypted: dict[str, Any] | None = None):
        self.decrypted = decrypted or {}
        self.builders: list[tuple[str, str, FakeBuilder]] = []
        self.decrypt_calls: list[tuple] = []

    def create_encrypted_input(self, contract_address: str, user_address: str) -> FakeBuilder:
        builder = FakeBuilder()
        self.builders.append((contract_address, user_address, builder))
        return builder

    async def user_decrypt(self, handles, *args) -> dict[str, Any]:
        self.decrypt_calls.append((handles, *args))
        return {item["handle"]: self.decrypted[item["handle"]] for item in handles if item["handle"] in self.decrypted}


def make_authorization(**overrides: Any) -> DecryptionAuthorization:
    data = {
        "private_key": "0xpriv",
        "public_key": "0xpub",
        "signature": "0xauthsig",
        "contract_addresses": [COUNTER_ADDRESS],
        "user_address": USER_ADDRESS,
        "start_timestamp": 1_700_000_000,
        "duration_days": 10,
    }
    data.update(overrides)
    return DecryptionAuthorization(**data)


class FakeAuthorizationLoader:
    """load_or_sign collaborator recording its calls."""

    def __init__(self, authorization: DecryptionAuthorization | None = None):
        self.authorization = authorization
        self.calls: list[tuple] = []

    async def __call__(self, engine, contract_addresses, signer, storage):
        self.calls.append((engine, contract_addresses, signer, storage))
        return self.authorization


class FakeRelayer:
    """Scripted relayer behind an httpx.MockTransport.

    Responses are queued per path as ``(status, json_body)`` tuples, or as
    exceptions to raise instead of answering.
    """

    def __init__(self):
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[tuple[str, dict | None, httpx.Headers]] = []

    def queue(self, path: str, *responses: Any) -> FakeRelayer:
        self.routes.setdefault(path, []).extend(responses)
        return self

    def session(self, session_id: str = "session-0001", nonce: int = 0, **extra: Any) -> FakeRelayer:
        body = {"sessionId": session_id, "nonce": nonce, "status": "active"}
        body.update(extra)
        return self.queue("/v1/sessions", (200, body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.url.path, body, request.headers))
        pending = self.routes.get(request.url.path)
        if not pending:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        response = pending.pop(0)
        if isinstance(response, Exception):
            raise response
        status, payload = response
        if isinstance(payload, (dict, list)):
            return httpx.Response(status, json=payload)
        return httpx.Response(status, content=payload or b"")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def bodies(self, path: str) -> list[dict | None]:
        return [body for request_path, body, _ in self.requests if request_path == path]


@pytest.fixture
def counter() -> ContractDescriptor:
    return ContractDescriptor(address=COUNTER_ADDRESS, abi=COUNTER_ABI, name="counter")


@pytest.fixture
def relayer() -> FakeRelayer:
    return FakeRelayer()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def typed_signer() -> FakeTypedDataSigner:
    return FakeTypedDataSigner()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(autouse=True)
def clear_state(monkeypatch):
    """Clear setting overrides, the contract registry and setting env vars for isolation."""
    from fheclient.registry import clear_contract_registry
    from fheclient.settings import SETTING_DEFS, clear_settings

    for defn in SETTING_DEFS.values():
        monkeypatch.delenv(defn.env_var, raising=False)
    clear_settings()
    clear_contract_registry()
    yield
    clear_settings()
    clear_contract_registry()
