"""Function ABI of the ERC-7984 confidential token standard."""

from __future__ import annotations

from typing import Any


def _param(name: str, internal_type: str, abi_type: str | None = None) -> dict[str, str]:
    return {"internalType": internal_type, "name": name, "type": abi_type or internal_type}


def _handle(name: str, internal_type: str = "euint64") -> dict[str, str]:
    # encrypted values travel as bytes32 handles
    return _param(name, internal_type, "bytes32")


def _fn(
    name: str,
    inputs: list[dict[str, str]],
    outputs: list[dict[str, str]] | None = None,
    mutability: str = "nonpayable",
) -> dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": outputs or [],
        "stateMutability": mutability,
        "type": "function",
    }


_TO = _param("to", "address")
_FROM = _param("from", "address")
_PROOF = _param("inputProof", "bytes")
_DATA = _param("data", "bytes")
_EXTERNAL_AMOUNT = _handle("encryptedAmount", "externalEuint64")
_AMOUNT = _handle("amount")
_TRANSFERRED = [_handle("transferred")]

ERC7984_ABI: list[dict[str, Any]] = [
    _fn("confidentialBalanceOf", [_param("account", "address")], [_handle("")], "view"),
    _fn("confidentialTotalSupply", [], [_handle("")], "view"),
    # Transfers come in two overloads: fresh external input + proof, or an
    # on-chain handle the caller is already allowed to use.
    _fn("confidentialTransfer", [_TO, _EXTERNAL_AMOUNT, _PROOF], [_handle("")]),
    _fn("confidentialTransfer", [_TO, _AMOUNT], [_handle("")]),
    _fn("confidentialTransferAndCall", [_TO, _AMOUNT, _DATA], _TRANSFERRED),
    _fn("confidentialTransferAndCall", [_TO, _EXTERNAL_AMOUNT, _PROOF, _DATA], _TRANSFERRED),
    _fn("confidentialTransferFrom", [_FROM, _TO, _EXTERNAL_AMOUNT, _PROOF], _TRANSFERRED),
    _fn("confidentialTransferFrom", [_FROM, _TO, _AMOUNT], _TRANSFERRED),
    _fn("confidentialTransferFromAndCall", [_FROM, _TO, _EXTERNAL_AMOUNT, _PROOF, _DATA], _TRANSFERRED),
    _fn("confidentialTransferFromAndCall", [_FROM, _TO, _AMOUNT, _DATA], _TRANSFERRED),
    _fn("decimals", [], [_param("", "uint8")], "view"),
    _fn("discloseEncryptedAmount", [_handle("encryptedAmount")]),
    _fn(
        "finalizeDiscloseEncryptedAmount",
        [
            _param("requestId", "uint256"),
            _param("cleartexts", "bytes"),
            _param("decryptionProof", "bytes"),
        ],
    ),
    _fn(
        "isOperator",
        [_param("holder", "address"), _param("spender", "address")],
        [_param("", "bool")],
        "view",
    ),
    _fn("name", [], [_param("", "string")], "view"),
    _fn("setOperator", [_param("operator", "address"), _param("until", "uint48")]),
    _fn("symbol", [], [_param("", "string")], "view"),
    _fn("tokenURI", [], [_param("", "string")], "view"),
]
