"""
Programmable Token Errors

Exception hierarchy raised by the transaction-assembly engine.
Every error carries a short machine-readable code, a category and the
HTTP status the API layer maps it to.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """
    Error categories surfaced to clients

    - CLIENT: the request itself is wrong or conflicts with chain state
    - RESOURCE: a protocol version, blueprint or the indexer is unavailable
    - INTERNAL: the registry or the transaction could not be assembled
    """

    CLIENT = "client"
    RESOURCE = "resource"
    INTERNAL = "internal"


class ProgrammableTokenError(Exception):
    """Base class for all engine errors"""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ============================================================================
# Client errors
# ============================================================================


class BadRequest(ProgrammableTokenError):
    """Request failed validation"""

    code = "BAD_REQUEST"
    category = ErrorCategory.CLIENT
    status_code = 400


class AlreadyRegistered(ProgrammableTokenError):
    """The derived policy id is already present in the registry"""

    code = "ALREADY_REGISTERED"
    category = ErrorCategory.CLIENT
    status_code = 409

    def __init__(self, policy_id: str, message: Optional[str] = None):
        super().__init__(message or f"Policy {policy_id} is already registered")
        self.policy_id = policy_id


class WalletEmpty(ProgrammableTokenError):
    """The fee-paying wallet has no spendable UTxOs"""

    code = "WALLET_EMPTY"
    category = ErrorCategory.CLIENT
    status_code = 400


# ============================================================================
# Resource errors
# ============================================================================


class UnknownVersion(ProgrammableTokenError):
    """No bootstrap descriptor exists for the requested protocol version"""

    code = "UNKNOWN_VERSION"
    category = ErrorCategory.RESOURCE
    status_code = 404


class BlueprintMissing(ProgrammableTokenError):
    """A blueprint file or validator title could not be resolved"""

    code = "BLUEPRINT_MISSING"
    category = ErrorCategory.RESOURCE
    status_code = 404


class BootstrapMissing(BlueprintMissing):
    """The protocol bootstrap file is missing, malformed or lists no deployment"""

    code = "BOOTSTRAP_MISSING"


class IndexerUnavailable(ProgrammableTokenError):
    """The UTxO indexer failed or did not answer in time"""

    code = "INDEXER_UNAVAILABLE"
    category = ErrorCategory.RESOURCE
    status_code = 503


# ============================================================================
# Internal errors
# ============================================================================


class RegistryInconsistent(ProgrammableTokenError):
    """The on-chain registry does not partition the key space"""

    code = "REGISTRY_INCONSISTENT"


class AssemblyFailure(ProgrammableTokenError):
    """Transaction composition or balancing failed"""

    code = "ASSEMBLY_FAILURE"


class MalformedData(ProgrammableTokenError):
    """Bytes are not valid script data"""

    code = "MALFORMED_DATA"


class ParamApplyFailure(ProgrammableTokenError):
    """A compiled script could not be parameterized"""

    code = "PARAM_APPLY_FAILURE"
