"""Confidential call client - one read/mutate surface over local and remote modes.

Example:
    config = RemoteModeConfig(contract=counter, signer=LocalAccountSigner(account))
    async with await create_client(config) as client:
        await client.mutate("increment", [1])
        print((await client.read("getCount")).value)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Sequence, Union

import httpx

from .chain import ContractGateway
from .engine import AuthorizationLoader, EngineFactory, EngineLoader, InMemoryStorage
from .local import LocalCallController
from .marshal import to_canonical_hex
from .models import BatchCall, BatchResult, ContractDescriptor, MutateResult, ReadResult
from .registry import resolve_contract
from .remote import RelayerOptions, RemoteSession
from .settings import get_setting, log_settings_sources
from .signer import Signer

logger = logging.getLogger(__name__)

Mode = Literal["local", "remote"]


@dataclass(frozen=True)
class RemoteModeConfig:
    """Relayer-backed client configuration."""

    contract: ContractDescriptor | str
    signer: Signer | None = None
    gateway: ContractGateway | None = None  # needed only for client-sign mutates
    relayer: RelayerOptions = field(default_factory=RelayerOptions)
    transport: httpx.AsyncBaseTransport | None = None
    mode: Literal["remote"] = "remote"


@dataclass(frozen=True)
class LocalModeConfig:
    """Direct chain access configuration."""

    contract: ContractDescriptor | str
    signer: Signer
    gateway: ContractGateway
    engine_factory: EngineFactory
    load_or_sign: AuthorizationLoader
    storage: InMemoryStorage | None = None
    mode: Literal["local"] = "local"


ClientConfig = Union[LocalModeConfig, RemoteModeConfig]


def create_config(contract: ContractDescriptor | str, mode: Mode | None = None, **options: Any) -> ClientConfig:
    """Build a config once and share it; *mode* defaults to the ``client.default_mode`` setting."""
    mode = mode or get_setting("client.default_mode")
    if mode == "local":
        return LocalModeConfig(contract=contract, **options)
    if mode == "remote":
        return RemoteModeConfig(contract=contract, **options)
    raise ValueError(f"Unknown client mode: {mode}")


class ConfidentialCallClient:
    """Uniform read/mutate facade over a local controller or a remote session.

    ``metadata`` is diagnostic only (relayer URL and session id in remote
    mode, empty in local mode).
    """

    def __init__(
        self,
        mode: Mode,
        contract: ContractDescriptor,
        controller: LocalCallController | RemoteSession,
    ):
        self.mode = mode
        self.contract = contract
        self._controller = controller

    @property
    def metadata(self) -> dict[str, Any]:
        return self._controller.metadata

    async def read(self, function_name: str | None = None, args: Sequence[Any] = ()) -> ReadResult:
        return await self._controller.read(function_name, list(args))

    async def decrypt_handle(self, handle: str) -> str:
        """Decrypt a handle obtained elsewhere (local mode only).

        Raises:
            ModeNotSupportedError: In remote mode
        """
        return await self._controller.decrypt_handle(to_canonical_hex(handle))

    async def mutate(self, function_name: str, values: Sequence[Any] = ()) -> MutateResult:
        return await self._controller.mutate(function_name, list(values))

    async def mutate_batch(
        self,
        calls: Sequence[BatchCall],
        stop_on_error: bool = False,
    ) -> list[BatchResult]:
        """Run mutates one after another, recording each outcome.

        Args:
            calls: Calls to run, in order
            stop_on_error: Stop at the first failed call

        Returns:
            One BatchResult per call that was attempted
        """
        results: list[BatchResult] = []
        for call in calls:
            try:
                outcome = await self.mutate(call.function_name, call.values)
            except Exception as e:
                logger.warning(f"Batch call {call.id or call.function_name} failed: {e}")
                results.append(BatchResult(id=call.id, success=False, error=e))
                if stop_on_error:
                    break
            else:
                results.append(BatchResult(id=call.id, success=True, result=outcome))
        return results

    async def aclose(self) -> None:
        """Release the client (cancels engine init or closes the relayer connection)."""
        await self._controller.aclose()

    async def __aenter__(self) -> ConfidentialCallClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


async def create_client(config: ClientConfig) -> ConfidentialCallClient:
    """Build a client for *config*, resolved once by its ``mode``.

    Remote clients come back with an open, active relayer session. Local
    clients start engine initialization immediately.

    Raises:
        ContractNotRegisteredError: If the contract is an unknown registry name
        MissingSignerError: If remote mode has no signer
    """
    contract = resolve_contract(config.contract)
    log_settings_sources(logging.DEBUG)

    if config.mode == "local":
        engine = EngineLoader(config.engine_factory)
        engine.start()
        controller = LocalCallController(
            contract,
            signer=config.signer,
            gateway=config.gateway,
            engine=engine,
            load_or_sign=config.load_or_sign,
            storage=config.storage,
        )
        return ConfidentialCallClient("local", contract, controller)

    session = RemoteSession(
        contract,
        config.signer,
        gateway=config.gateway,
        options=config.relayer,
        transport=config.transport,
    )
    try:
        await session.open()
    except BaseException:
        await session.aclose()
        raise
    return ConfidentialCallClient("remote", contract, session)
