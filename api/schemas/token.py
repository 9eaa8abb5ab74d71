"""
Token Schemas

Pydantic models for programmable token API responses.
Request bodies are the core request models (programmable_tokens.models).
"""

from pydantic import BaseModel, Field

from api.enums import ErrorCategory


class RegisterTokenResponse(BaseModel):
    """Unsigned registration transaction"""

    policy_id: str = Field(description="Policy ID of the newly registered programmable token")
    unsigned_cbor_tx: str = Field(description="Unsigned transaction CBOR (hex)")


class MintTokenResponse(BaseModel):
    """Unsigned minting transaction"""

    policy_id: str = Field(description="Policy ID of the minted programmable token")
    unsigned_cbor_tx: str = Field(description="Unsigned transaction CBOR (hex)")


class TokenErrorResponse(BaseModel):
    """Error response for token operations"""

    success: bool = Field(False, description="Always false")
    error: str = Field(description="Error message")
    error_code: str = Field(description="Short machine-readable error code")
    category: ErrorCategory | None = Field(None, description="Error category")
    policy_id: str | None = Field(None, description="Conflicting policy ID (ALREADY_REGISTERED only)")
