"""Tests for error classification."""

import pytest

from fheclient.errors import (
    DecryptionAuthorizationError,
    EmptyDecryptResultError,
    ErrorCode,
    FheClientError,
    RelayerError,
    TransactionRevertedError,
    UnsupportedSignerError,
    classify_error,
    user_friendly_message,
)


class TestClassifyError:
    @pytest.mark.parametrize(
        "message,code",
        [
            ("User rejected the request.", ErrorCode.USER_REJECTED),
            ("insufficient funds for gas * price + value", ErrorCode.INSUFFICIENT_FUNDS),
            ("nonce too low", ErrorCode.INVALID_NONCE),
            ("intrinsic gas too low", ErrorCode.GAS_ERROR),
            ("execution reverted: not allowed", ErrorCode.TRANSACTION_REVERTED),
            ("request timeout", ErrorCode.NETWORK_ERROR),
            ("Network changed", ErrorCode.NETWORK_ERROR),
            ("invalid signature length", ErrorCode.SIGNATURE_ERROR),
            ("could not decrypt handle", ErrorCode.DECRYPTION_ERROR),
            ("failed to encrypt input", ErrorCode.ENCRYPTION_ERROR),
            ("something odd", ErrorCode.UNKNOWN_ERROR),
        ],
    )
    def test_message_patterns(self, message, code):
        assert classify_error(Exception(message)) is code

    def test_typed_errors(self):
        assert classify_error(RelayerError("connection refused")) is ErrorCode.NETWORK_ERROR
        assert classify_error(EmptyDecryptResultError("empty")) is ErrorCode.DECRYPTION_ERROR
        assert classify_error(DecryptionAuthorizationError("none")) is ErrorCode.DECRYPTION_ERROR
        assert classify_error(UnsupportedSignerError("no typed data")) is ErrorCode.SIGNATURE_ERROR
        assert classify_error(TransactionRevertedError("0xabc")) is ErrorCode.TRANSACTION_REVERTED

    def test_relayer_status_error_uses_message(self):
        error = RelayerError("Invalid nonce", status_code=409)

        assert error.status_code == 409
        assert classify_error(error) is ErrorCode.INVALID_NONCE


class TestUserFriendlyMessage:
    def test_known_code(self):
        message = user_friendly_message(Exception("User rejected the request"))
        assert message.startswith("You rejected the transaction")

    def test_unknown_keeps_original(self):
        assert user_friendly_message(Exception("something odd")) == "something odd"


def test_errors_share_base():
    assert issubclass(RelayerError, FheClientError)
    assert issubclass(TransactionRevertedError, FheClientError)
