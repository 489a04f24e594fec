"""fheclient - Confidential call client for FHE smart contracts."""

from .chain import ContractGateway, Web3ContractGateway
from .client import (
    ClientConfig,
    ConfidentialCallClient,
    LocalModeConfig,
    RemoteModeConfig,
    create_client,
    create_config,
)
from .engine import (
    DecryptionAuthorization,
    EncryptedInputBuilder,
    EncryptionEngine,
    EngineLoader,
    InMemoryStorage,
)
from .erc7984 import ERC7984_ABI
from .errors import (
    ContractNotRegisteredError,
    DecryptionAuthorizationError,
    EmptyDecryptResultError,
    EncryptedInputMismatchError,
    EngineCancelledError,
    ErrorCode,
    FheClientError,
    FunctionNotFoundError,
    MissingSignerError,
    ModeNotSupportedError,
    ProtocolViolationError,
    RelayerError,
    SessionNotActiveError,
    TransactionRevertedError,
    UnsupportedSignerError,
    classify_error,
    user_friendly_message,
)
from .local import LocalCallController
from .marshal import (
    EncryptionMethod,
    build_call_arguments,
    classify_encryption_method,
    to_canonical_hex,
)
from .models import (
    BatchCall,
    BatchResult,
    ContractDescriptor,
    EncryptedInputResult,
    MutateResult,
    ReadResult,
)
from .registry import (
    clear_contract_registry,
    create_contract_registry,
    get_all_registered_contracts,
    get_registered_contract,
    register_contract,
)
from .remote import RelayerOptions, RemoteSession, SessionPhase
from .signer import LocalAccountSigner, Signer

__all__ = [
    # Client
    "ConfidentialCallClient",
    "ClientConfig",
    "LocalModeConfig",
    "RemoteModeConfig",
    "create_client",
    "create_config",
    "LocalCallController",
    "RemoteSession",
    "RelayerOptions",
    "SessionPhase",
    # Chain and signing
    "ContractGateway",
    "Web3ContractGateway",
    "Signer",
    "LocalAccountSigner",
    # Engine
    "EncryptionEngine",
    "EncryptedInputBuilder",
    "EngineLoader",
    "DecryptionAuthorization",
    "InMemoryStorage",
    # Marshaling
    "EncryptionMethod",
    "build_call_arguments",
    "classify_encryption_method",
    "to_canonical_hex",
    # Models
    "ContractDescriptor",
    "EncryptedInputResult",
    "ReadResult",
    "MutateResult",
    "BatchCall",
    "BatchResult",
    "ERC7984_ABI",
    # Registry
    "register_contract",
    "get_registered_contract",
    "get_all_registered_contracts",
    "clear_contract_registry",
    "create_contract_registry",
    # Exceptions
    "FheClientError",
    "FunctionNotFoundError",
    "UnsupportedSignerError",
    "ProtocolViolationError",
    "RelayerError",
    "EmptyDecryptResultError",
    "MissingSignerError",
    "EngineCancelledError",
    "DecryptionAuthorizationError",
    "EncryptedInputMismatchError",
    "SessionNotActiveError",
    "ContractNotRegisteredError",
    "TransactionRevertedError",
    "ModeNotSupportedError",
    "ErrorCode",
    "classify_error",
    "user_friendly_message",
]
__version__ = "0.1.0"
