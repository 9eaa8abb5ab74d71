"""
Protocol Schemas

Pydantic models describing the deployed protocol: blueprint validators and
bootstrap versions.
"""

from pydantic import BaseModel, Field


class BlueprintValidatorItem(BaseModel):
    """Compiled protocol validator"""

    title: str = Field(description="Validator title")
    compiled_code: str = Field(description="Compiled code (CBOR hex), unparameterized")
    hash: str | None = Field(None, description="Compiler-reported hash of the template")


class BlueprintResponse(BaseModel):
    """Protocol blueprint"""

    validators: list[BlueprintValidatorItem] = Field(description="Protocol validators")
    total: int = Field(description="Number of validators")


class ProtocolVersionsResponse(BaseModel):
    """All deployed protocol versions"""

    active_tx_hash: str = Field(description="Version used when a request names none")
    versions: list[dict] = Field(description="Bootstrap descriptors (camelCase, as deployed)")
    total: int = Field(description="Number of versions")


class SubstandardsResponse(BaseModel):
    """Available substandards"""

    substandards: list[str] = Field(description="Substandard names")
