"""Named contract registry.

Lets applications register their contracts once and build clients by name.
"""

from __future__ import annotations

import logging

from .errors import ContractNotRegisteredError
from .models import ContractDescriptor

logger = logging.getLogger(__name__)

# In-memory registry (keyed by contract name)
_contract_registry: dict[str, ContractDescriptor] = {}


def register_contract(name: str, descriptor: ContractDescriptor) -> None:
    """Register (or replace) a contract under *name*."""
    _contract_registry[name] = descriptor
    logger.debug(f"Registered contract {name} at {descriptor.address}")


def get_registered_contract(name: str) -> ContractDescriptor | None:
    return _contract_registry.get(name)


def get_all_registered_contracts() -> dict[str, ContractDescriptor]:
    """Return a copy of the registry."""
    return dict(_contract_registry)


def clear_contract_registry() -> None:
    _contract_registry.clear()


def create_contract_registry(contracts: dict[str, ContractDescriptor]) -> None:
    """Register several contracts at once."""
    for name, descriptor in contracts.items():
        register_contract(name, descriptor)


def resolve_contract(contract: ContractDescriptor | str) -> ContractDescriptor:
    """Return *contract* itself, or the descriptor registered under that name.

    Raises:
        ContractNotRegisteredError: If a name is given and nothing is registered under it
    """
    if isinstance(contract, ContractDescriptor):
        return contract
    descriptor = _contract_registry.get(contract)
    if descriptor is None:
        raise ContractNotRegisteredError(f"Contract not registered: {contract}")
    return descriptor
