"""Contract invocation for local mode and client-sign mutates."""

from __future__ import annotations

from typing import Any, Protocol

from web3 import AsyncWeb3, Web3

from .marshal import find_function_fragment
from .models import ContractDescriptor, MutateResult
from .signer import LocalAccountSigner


class ContractGateway(Protocol):
    """A contract bound to the caller's signer."""

    async def call(self, function_name: str, *args: Any) -> Any: ...

    async def transact(self, function_name: str, *args: Any) -> MutateResult: ...


class Web3ContractGateway:
    """ContractGateway over an AsyncWeb3 contract.

    Views are plain ``eth_call``s; transactions are built by web3 and
    signed and sent through the LocalAccountSigner.
    """

    def __init__(self, w3: AsyncWeb3, contract: ContractDescriptor, signer: LocalAccountSigner):
        self.w3 = w3
        self.descriptor = contract
        self.signer = signer
        self.contract = w3.eth.contract(
            address=Web3.to_checksum_address(contract.address),
            abi=contract.abi,
        )

    def _function(self, function_name: str, *args: Any):
        # FunctionNotFoundError instead of web3's ABIFunctionNotFound
        find_function_fragment(self.descriptor.abi, function_name)
        return getattr(self.contract.functions, function_name)(*args)

    async def call(self, function_name: str, *args: Any) -> Any:
        return await self._function(function_name, *args).call()

    async def transact(self, function_name: str, *args: Any) -> MutateResult:
        address = await self.signer.get_address()
        tx = await self._function(function_name, *args).build_transaction({"from": address})
        return await self.signer.send_transaction(tx)
