"""Exceptions and error classification for the fheclient SDK."""

from __future__ import annotations

from enum import Enum


class FheClientError(Exception):
    """Base exception for fheclient errors."""

    pass


class FunctionNotFoundError(FheClientError):
    """Raised when a function is not declared in the contract ABI."""

    pass


class UnsupportedSignerError(FheClientError):
    """Raised when the signer cannot produce EIP-712 typed-data signatures."""

    pass


class ProtocolViolationError(FheClientError):
    """Raised when a relayer response matches no known shape."""

    pass


class RelayerError(FheClientError):
    """Raised when the relayer answers with a non-2xx status or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyDecryptResultError(FheClientError):
    """Raised when the engine returns no cleartext for a requested handle."""

    pass


class MissingSignerError(FheClientError):
    """Raised when an operation needs a signer that was not configured."""

    pass


class EngineCancelledError(FheClientError):
    """Raised when the encryption engine is requested after its initialization was cancelled."""

    pass


class DecryptionAuthorizationError(FheClientError):
    """Raised when no decryption authorization could be obtained."""

    pass


class EncryptedInputMismatchError(FheClientError):
    """Raised when the encrypted input carries fewer handles than the ABI consumes."""

    pass


class SessionNotActiveError(FheClientError):
    """Raised when a signed request is attempted on a session that is not active."""

    pass


class ContractNotRegisteredError(FheClientError):
    """Raised when a contract name is not in the contract registry."""

    pass


class TransactionRevertedError(FheClientError):
    """Raised when a submitted transaction is mined with a failed status."""

    pass


class ModeNotSupportedError(FheClientError):
    """Raised when an operation is not available in the client's mode."""

    pass


class ErrorCode(str, Enum):
    """Stable codes for failures surfaced by wallets, RPC nodes and the relayer."""

    USER_REJECTED = "USER_REJECTED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INVALID_NONCE = "INVALID_NONCE"
    GAS_ERROR = "GAS_ERROR"
    TRANSACTION_REVERTED = "TRANSACTION_REVERTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    SIGNATURE_ERROR = "SIGNATURE_ERROR"
    DECRYPTION_ERROR = "DECRYPTION_ERROR"
    ENCRYPTION_ERROR = "ENCRYPTION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Checked in order, first match wins.
_MESSAGE_PATTERNS: list[tuple[tuple[str, ...], ErrorCode]] = [
    (("user rejected",), ErrorCode.USER_REJECTED),
    (("insufficient funds",), ErrorCode.INSUFFICIENT_FUNDS),
    (("nonce",), ErrorCode.INVALID_NONCE),
    (("gas",), ErrorCode.GAS_ERROR),
    (("revert",), ErrorCode.TRANSACTION_REVERTED),
    (("network", "timeout"), ErrorCode.NETWORK_ERROR),
    (("signature",), ErrorCode.SIGNATURE_ERROR),
    (("decrypt",), ErrorCode.DECRYPTION_ERROR),
    (("encrypt",), ErrorCode.ENCRYPTION_ERROR),
]

_FRIENDLY_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.USER_REJECTED: "You rejected the transaction. Please try again if you want to proceed.",
    ErrorCode.INSUFFICIENT_FUNDS: "You don't have enough funds to complete this transaction.",
    ErrorCode.INVALID_NONCE: "Transaction nonce is invalid. Please retry the request.",
    ErrorCode.GAS_ERROR: "There was an issue with gas estimation. Try increasing the gas limit.",
    ErrorCode.TRANSACTION_REVERTED: (
        "The transaction was reverted by the contract. Check the transaction requirements."
    ),
    ErrorCode.NETWORK_ERROR: "Network connection issue. Please check your connection and try again.",
    ErrorCode.SIGNATURE_ERROR: "Failed to sign the request. Please try again.",
    ErrorCode.DECRYPTION_ERROR: (
        "Failed to decrypt the value. Make sure you have the correct permissions."
    ),
    ErrorCode.ENCRYPTION_ERROR: "Failed to encrypt the value. Please try again.",
}


def classify_error(error: BaseException) -> ErrorCode:
    """Map an exception onto a stable ErrorCode.

    Typed fheclient errors classify directly; anything else (wallet or RPC
    exceptions) is classified by substring match on its message.
    """
    if isinstance(error, RelayerError) and error.status_code is None:
        return ErrorCode.NETWORK_ERROR
    if isinstance(error, (EmptyDecryptResultError, DecryptionAuthorizationError)):
        return ErrorCode.DECRYPTION_ERROR
    if isinstance(error, UnsupportedSignerError):
        return ErrorCode.SIGNATURE_ERROR
    if isinstance(error, TransactionRevertedError):
        return ErrorCode.TRANSACTION_REVERTED

    message = str(error).lower()
    for needles, code in _MESSAGE_PATTERNS:
        if any(needle in message for needle in needles):
            return code
    return ErrorCode.UNKNOWN_ERROR


def user_friendly_message(error: BaseException) -> str:
    """Return a sentence suitable for showing to an end user."""
    code = classify_error(error)
    return _FRIENDLY_MESSAGES.get(code) or str(error)
