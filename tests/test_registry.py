"""Tests for the named contract registry."""

import pytest
from pydantic import ValidationError

from conftest import COUNTER_ABI, COUNTER_ADDRESS
from fheclient.errors import ContractNotRegisteredError
from fheclient.models import ContractDescriptor
from fheclient.registry import (
    create_contract_registry,
    get_all_registered_contracts,
    get_registered_contract,
    register_contract,
    resolve_contract,
)

TOKEN = ContractDescriptor(address="0x4444444444444444444444444444444444444444", abi=[], name="token")


def test_register_and_get(counter):
    register_contract("counter", counter)

    assert get_registered_contract("counter") is counter
    assert get_registered_contract("token") is None


def test_register_replaces(counter):
    register_contract("counter", counter)
    replacement = ContractDescriptor(address=COUNTER_ADDRESS, abi=COUNTER_ABI[:1])
    register_contract("counter", replacement)

    assert get_registered_contract("counter") is replacement


def test_create_registry_and_copy(counter):
    create_contract_registry({"counter": counter, "token": TOKEN})

    contracts = get_all_registered_contracts()
    contracts.pop("token")

    assert set(get_all_registered_contracts()) == {"counter", "token"}


def test_resolve(counter):
    register_contract("counter", counter)

    assert resolve_contract(counter) is counter
    assert resolve_contract("counter") is counter
    with pytest.raises(ContractNotRegisteredError, match="token"):
        resolve_contract("token")


def test_descriptor_is_frozen(counter):
    with pytest.raises(ValidationError):
        counter.address = "0x0"
