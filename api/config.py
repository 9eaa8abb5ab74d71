"""
API Configuration

Centralized settings for the FastAPI application.
API metadata is hardcoded, while environment-specific settings load from .env file.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from api.enums import NetworkType


# Get the project root directory (one level up from api/)
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """
    Application settings for the Programmable Tokens API

    API metadata (title, description, version, contact) are hardcoded.
    Environment-specific settings are loaded from .env file.
    """

    # ============================================================================
    # API Metadata (hardcoded - versioned with code)
    # ============================================================================

    api_title: str = "Programmable Tokens API"
    api_description: str = (
        "Off-chain transaction building for CIP-0113 programmable tokens. "
        "Registers new token policies in the on-chain registry and mints programmable "
        "tokens, returning unsigned transactions ready for wallet signing."
    )
    api_version: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Contact information
    contact_name: str = "Programmable Tokens"
    contact_url: str = "https://cips.cardano.org/cip/CIP-0113"

    # ============================================================================
    # Environment Settings (loaded from .env)
    # ============================================================================

    environment: str = "development"  # development, staging, production
    api_port: int = 8000
    log_level: str = "INFO"

    # Chain access
    network: NetworkType = NetworkType.PREVIEW
    blockfrost_api_key: str | None = None
    indexer_timeout_seconds: float = 10.0

    # Protocol artifacts
    blueprint_path: str = str(PROJECT_ROOT / "resources" / "plutus.json")
    bootstrap_dir: str = str(PROJECT_ROOT / "resources")
    substandards_dir: str = str(PROJECT_ROOT / "resources" / "substandards")
    default_protocol_tx_hash: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"), env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def contact(self) -> dict[str, str]:
        """FastAPI contact information"""
        return {"name": self.contact_name, "url": self.contact_url}

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment.lower() == "production"


# ============================================================================
# Global settings instance
# ============================================================================

settings = Settings()
