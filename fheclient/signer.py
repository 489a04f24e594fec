"""Signer contract and an eth_account-backed implementation.

The client only needs three things from a signer: its address, a
personal_sign signature over the request message, and (for relayer
sessions that ask for it) an EIP-712 typed-data signature. Sending
transactions is needed for local mode and client-sign mutates.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3

from .errors import MissingSignerError, TransactionRevertedError
from .marshal import to_canonical_hex
from .models import MutateResult

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPE = "EIP712Domain"


@runtime_checkable
class Signer(Protocol):
    """Minimal signer used to authenticate relayer requests."""

    async def get_address(self) -> str: ...

    async def sign_message(self, message: str) -> str: ...


def supports_typed_data(signer: Any) -> bool:
    """True if *signer* exposes an EIP-712 ``sign_typed_data`` method."""
    return callable(getattr(signer, "sign_typed_data", None))


class LocalAccountSigner:
    """Signer backed by an eth_account LocalAccount.

    Example:
        account = Account.from_key(private_key)
        signer = LocalAccountSigner(account, w3=AsyncWeb3(AsyncHTTPProvider(rpc_url)))
    """

    def __init__(self, account: LocalAccount, w3: AsyncWeb3 | None = None):
        """Create a signer.

        Args:
            account: Local account holding the private key
            w3: Async web3 connection, required only to send transactions
        """
        self.account = account
        self.w3 = w3

    async def get_address(self) -> str:
        return self.account.address

    async def sign_message(self, message: str) -> str:
        """personal_sign over a UTF-8 text message."""
        signed = self.account.sign_message(encode_defunct(text=message))
        return to_canonical_hex(bytes(signed.signature))

    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        message: dict[str, Any],
    ) -> str:
        """Sign EIP-712 typed data.

        The domain type is derived from *domain*, so an explicit
        ``EIP712Domain`` entry in *types* is ignored.
        """
        message_types = {name: fields for name, fields in types.items() if name != EIP712_DOMAIN_TYPE}
        signed = self.account.sign_typed_data(
            domain_data=domain,
            message_types=message_types,
            message_data=message,
        )
        return to_canonical_hex(bytes(signed.signature))

    async def send_transaction(self, tx: dict[str, Any]) -> MutateResult:
        """Sign and send a transaction, waiting for its receipt.

        Raises:
            MissingSignerError: If the signer has no web3 connection
            TransactionRevertedError: If the transaction is mined with status != 1
        """
        if self.w3 is None:
            raise MissingSignerError("Sending transactions requires a web3 connection on the signer")

        tx = dict(tx)
        tx.setdefault("from", self.account.address)
        if "nonce" not in tx:
            tx["nonce"] = await self.w3.eth.get_transaction_count(self.account.address, "pending")

        signed = self.account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        tx_hex = to_canonical_hex(bytes(tx_hash))
        if receipt["status"] != 1:
            raise TransactionRevertedError(f"Transaction failed: {tx_hex}")

        logger.info(f"Transaction {tx_hex[:10]}... mined in block {receipt['blockNumber']}")
        return MutateResult(tx_hash=tx_hex, block_number=receipt["blockNumber"])
