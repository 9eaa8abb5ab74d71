"""
Request Models

Validated inputs for register and mint operations. Field names are snake_case;
the camelCase names used by wallets and frontends are accepted as aliases.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ADDRESS_PATTERN = r"^addr(_test)?1[a-z0-9]+$"
ASSET_NAME_PATTERN = r"^[a-fA-F0-9]{1,64}$"
QUANTITY_PATTERN = r"^[1-9][0-9]*$"


class _TokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    substandard_name: str = Field(
        alias="substandardName", min_length=1, description="Substandard id, e.g. 'dummy'"
    )
    substandard_issue_contract_name: str = Field(
        alias="substandardIssueContractName", min_length=1, description="Title of the issue validator"
    )
    asset_name: str = Field(
        alias="assetName", pattern=ASSET_NAME_PATTERN, description="Hex-encoded asset name (max 32 bytes)"
    )
    quantity: str = Field(pattern=QUANTITY_PATTERN, description="Amount to mint, as a decimal string")
    recipient_address: Optional[str] = Field(
        None, alias="recipientAddress", pattern=ADDRESS_PATTERN, description="Owner of the minted tokens"
    )

    @field_validator("recipient_address", mode="before")
    @classmethod
    def blank_recipient_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("asset_name")
    @classmethod
    def even_length_asset_name(cls, value: str) -> str:
        if len(value) % 2:
            raise ValueError("Asset name must be an even number of hex characters")
        return value.lower()

    @property
    def asset_name_bytes(self) -> bytes:
        return bytes.fromhex(self.asset_name)

    @property
    def quantity_value(self) -> int:
        return int(self.quantity)


class RegisterTokenRequest(_TokenRequest):
    """Register a new programmable token policy and mint its first supply"""

    registrar_address: str = Field(
        alias="registrarAddress", pattern=ADDRESS_PATTERN, description="Fee payer and change address"
    )
    substandard_transfer_contract_name: str = Field(
        alias="substandardTransferContractName", min_length=1, description="Title of the transfer validator"
    )


class MintTokenRequest(_TokenRequest):
    """Mint additional supply of a registered programmable token"""

    issuer_base_address: str = Field(
        alias="issuerBaseAddress", pattern=ADDRESS_PATTERN, description="Issuer address paying the fees"
    )
