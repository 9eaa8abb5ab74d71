"""
Shared Enums

Enums used across settings, API schemas and business logic.
"""

from enum import Enum

from programmable_tokens.exceptions import ErrorCategory


# ============================================================================
# Blockchain Enums
# ============================================================================


class NetworkType(str, Enum):
    """Cardano networks with a Blockfrost endpoint"""

    PREVIEW = "preview"
    PREPROD = "preprod"
    MAINNET = "mainnet"


__all__ = ["NetworkType", "ErrorCategory"]
