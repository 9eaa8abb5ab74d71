"""
Bootstrap Catalog

Protocol deployment descriptors loaded from ``protocol-bootstraps-<network>.json``.
Each descriptor is identified by the transaction hash of the deployment and
records the script hashes of the global validators together with the UTxOs
the validators read at spend time.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pycardano as pc
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .exceptions import BootstrapMissing, UnknownVersion


logger = logging.getLogger(__name__)

BOOTSTRAP_FILENAME = "protocol-bootstraps-{network}.json"


class _CamelModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class UtxoRef(_CamelModel):
    """Transaction output reference"""

    tx_hash: str = Field(alias="txHash", pattern=r"^[0-9a-fA-F]{64}$")
    output_index: int = Field(alias="outputIndex", ge=0)

    def to_input(self) -> pc.TransactionInput:
        return pc.TransactionInput.from_primitive([self.tx_hash, self.output_index])


class ScriptParams(_CamelModel):
    script_hash: str = Field(alias="scriptHash")


class DirectoryMintParams(_CamelModel):
    """Parameters the registry mint script was instantiated with at deployment"""

    tx_input: UtxoRef = Field(alias="txInput")
    issuance_script_hash: str = Field(alias="issuanceScriptHash")
    script_hash: Optional[str] = Field(None, alias="scriptHash")


class IssuanceParams(_CamelModel):
    tx_input: Optional[UtxoRef] = Field(None, alias="txInput")
    script_hash: Optional[str] = Field(None, alias="scriptHash")


class BootstrapDescriptor(_CamelModel):
    """One protocol deployment version"""

    tx_hash: str = Field(alias="txHash")
    protocol_params: ScriptParams = Field(alias="protocolParams")
    programmable_logic_global_params: ScriptParams = Field(
        validation_alias=AliasChoices("programmableLogicGlobalPrams", "programmableLogicGlobalParams"),
        serialization_alias="programmableLogicGlobalPrams",
    )
    programmable_logic_base_params: ScriptParams = Field(alias="programmableLogicBaseParams")
    issuance_params: Optional[IssuanceParams] = Field(None, alias="issuanceParams")
    directory_mint_params: DirectoryMintParams = Field(alias="directoryMintParams")
    directory_spend_params: Optional[ScriptParams] = Field(None, alias="directorySpendParams")
    programmable_base_ref_input: Optional[UtxoRef] = Field(None, alias="programmableBaseRefInput")
    programmable_global_ref_input: Optional[UtxoRef] = Field(None, alias="programmableGlobalRefInput")
    protocol_params_utxo: Optional[UtxoRef] = Field(None, alias="protocolParamsUtxo")
    directory_utxo: Optional[UtxoRef] = Field(None, alias="directoryUtxo")
    issuance_utxo: Optional[UtxoRef] = Field(None, alias="issuanceUtxo")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


_DESCRIPTOR_LIST = TypeAdapter(List[BootstrapDescriptor])


class BootstrapCatalog:
    """Immutable set of deployment descriptors with one active version"""

    def __init__(self, descriptors: List[BootstrapDescriptor], default_tx_hash: Optional[str] = None):
        if not descriptors:
            raise BootstrapMissing("No protocol bootstrap descriptors loaded")

        self._by_tx_hash: Dict[str, BootstrapDescriptor] = {}
        for descriptor in descriptors:
            self._by_tx_hash[descriptor.tx_hash] = descriptor
            logger.info(f"Loaded protocol bootstrap for txHash: {descriptor.tx_hash}")

        if default_tx_hash and default_tx_hash in self._by_tx_hash:
            self._active = self._by_tx_hash[default_tx_hash]
            logger.info(f"Using default protocol bootstrap with txHash: {default_tx_hash}")
        else:
            if default_tx_hash:
                logger.warning(f"Default txHash {default_tx_hash} not found in bootstraps, using first available")
            self._active = descriptors[0]

    @classmethod
    def load(cls, directory, network: str, default_tx_hash: Optional[str] = None) -> "BootstrapCatalog":
        """
        Load the bootstrap file for a network

        Args:
            directory: Directory holding the protocol-bootstraps-*.json files
            network: Network name (preview, preprod, mainnet)
            default_tx_hash: Preferred active version

        Raises:
            BootstrapMissing: If the file is missing, malformed or empty
        """
        path = Path(directory) / BOOTSTRAP_FILENAME.format(network=network)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise BootstrapMissing(f"Bootstrap file not readable: {path} ({e})") from e
        except json.JSONDecodeError as e:
            raise BootstrapMissing(f"Bootstrap file is not valid JSON: {path} ({e})") from e

        try:
            descriptors = _DESCRIPTOR_LIST.validate_python(raw)
        except ValidationError as e:
            raise BootstrapMissing(f"Bootstrap file is malformed: {path} ({e})") from e

        return cls(descriptors, default_tx_hash)

    def active(self) -> BootstrapDescriptor:
        return self._active

    def get(self, tx_hash: str) -> BootstrapDescriptor:
        descriptor = self._by_tx_hash.get(tx_hash)
        if descriptor is None:
            raise UnknownVersion(f"Unknown protocol version: {tx_hash}")
        return descriptor

    def resolve(self, tx_hash: Optional[str] = None) -> BootstrapDescriptor:
        """The requested version, or the active one when none is given"""
        if tx_hash:
            return self.get(tx_hash)
        return self._active

    def all(self) -> List[BootstrapDescriptor]:
        return list(self._by_tx_hash.values())
