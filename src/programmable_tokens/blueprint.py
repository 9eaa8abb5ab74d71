"""
Blueprint Registry

Loads Aiken/CIP-57 blueprint files and resolves compiled validators by title.
Also holds the catalog of substandard blueprints (issue and transfer
validators plugged into the protocol per token).
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional

import pycardano as pc
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import BlueprintMissing


logger = logging.getLogger(__name__)


# ============================================================================
# Protocol validator titles
# ============================================================================

REGISTRY_MINT = "registry_mint.registry_mint.mint"
REGISTRY_SPEND = "registry_spend.registry_spend.spend"
ISSUANCE_MINT = "issuance_mint.issuance_mint.mint"
PROGRAMMABLE_LOGIC_BASE = "programmable_logic_base.programmable_logic_base.spend"
PROGRAMMABLE_LOGIC_GLOBAL = "programmable_logic_global.programmable_logic_global.withdraw"

PROTOCOL_TITLES = frozenset(
    {
        REGISTRY_MINT,
        REGISTRY_SPEND,
        ISSUANCE_MINT,
        PROGRAMMABLE_LOGIC_BASE,
        PROGRAMMABLE_LOGIC_GLOBAL,
    }
)


class BlueprintValidator(BaseModel):
    """A single validator entry of a blueprint file"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str = Field(description="Validator title (module.validator.purpose)")
    compiled_code: Optional[str] = Field(
        None, alias="compiledCode", description="Single CBOR-wrapped flat UPLC, hex"
    )
    hash: Optional[str] = Field(None, description="Script hash as reported by the compiler")


class BlueprintFile(BaseModel):
    """Top level blueprint document; fields other than validators are ignored"""

    model_config = ConfigDict(extra="ignore")

    validators: List[BlueprintValidator]


def _read_blueprint(path: Path) -> BlueprintFile:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BlueprintMissing(f"Blueprint file not readable: {path} ({e})") from e
    try:
        return BlueprintFile.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise BlueprintMissing(f"Blueprint file is malformed: {path} ({e})") from e


class BlueprintRegistry:
    """Immutable title -> compiled script lookup"""

    def __init__(self, validators: Iterable[BlueprintValidator], source: str = "<memory>"):
        self._source = source
        self._validators: Dict[str, BlueprintValidator] = {}
        for validator in validators:
            if validator.compiled_code:
                self._validators[validator.title] = validator

    @classmethod
    def load(cls, path, required_titles: Iterable[str] = PROTOCOL_TITLES) -> "BlueprintRegistry":
        """
        Load a blueprint file and check that every required title is present

        Args:
            path: Path to the blueprint JSON file
            required_titles: Titles that must resolve

        Returns:
            BlueprintRegistry instance

        Raises:
            BlueprintMissing: If the file is missing, malformed or incomplete
        """
        path = Path(path)
        blueprint = _read_blueprint(path)
        registry = cls(blueprint.validators, source=str(path))

        missing = sorted(set(required_titles) - registry.titles())
        if missing:
            raise BlueprintMissing(f"Blueprint {path} is missing validators: {', '.join(missing)}")

        logger.info(f"Loaded blueprint {path} with {len(registry.titles())} validators")
        return registry

    def titles(self) -> FrozenSet[str]:
        return frozenset(self._validators)

    def __contains__(self, title: str) -> bool:
        return title in self._validators

    def get(self, title: str) -> pc.PlutusV3Script:
        """Get the compiled body of a validator by title"""
        validator = self._validators.get(title)
        if validator is None:
            raise BlueprintMissing(f"Validator '{title}' not found in {self._source}")
        return pc.PlutusV3Script(bytes.fromhex(validator.compiled_code))

    def validators(self) -> List[BlueprintValidator]:
        return list(self._validators.values())


# ============================================================================
# Substandards
# ============================================================================


@dataclass(frozen=True)
class SubstandardValidator:
    """Compiled substandard validator and its script hash"""

    substandard: str
    title: str
    script: pc.PlutusV3Script
    script_hash: pc.ScriptHash


class SubstandardCatalog:
    """
    Substandard blueprints keyed by substandard name.

    A substandard directory contains either ``<name>/plutus.json`` or
    ``<name>.json`` files; the name is the directory or file stem.
    """

    def __init__(self, blueprints: Dict[str, BlueprintRegistry]):
        self._blueprints = dict(blueprints)

    @classmethod
    def load(cls, directory) -> "SubstandardCatalog":
        directory = Path(directory)
        if not directory.is_dir():
            raise BlueprintMissing(f"Substandards directory not found: {directory}")

        blueprints: Dict[str, BlueprintRegistry] = {}
        for entry in sorted(directory.iterdir()):
            if entry.is_dir() and (entry / "plutus.json").is_file():
                blueprints[entry.name] = BlueprintRegistry.load(entry / "plutus.json", required_titles=())
            elif entry.is_file() and entry.suffix == ".json":
                blueprints[entry.stem] = BlueprintRegistry.load(entry, required_titles=())

        logger.info(f"Loaded {len(blueprints)} substandards from {directory}: {sorted(blueprints)}")
        return cls(blueprints)

    def names(self) -> List[str]:
        return sorted(self._blueprints)

    def get_validator(self, substandard: str, title: str) -> Optional[SubstandardValidator]:
        """Resolve a validator of a substandard, or None when either is unknown"""
        blueprint = self._blueprints.get(substandard)
        if blueprint is None or title not in blueprint:
            return None
        script = blueprint.get(title)
        return SubstandardValidator(
            substandard=substandard,
            title=title,
            script=script,
            script_hash=pc.plutus_script_hash(script),
        )
