"""
Protocol Dependencies

Process-wide protocol state (blueprint, bootstrap catalog, substandards,
script cache) loaded once at startup, and the issuance service built on top
of it. Everything here is immutable after loading.
"""

import logging

from fastapi import Depends, HTTPException

from api.config import settings
from api.dependencies.chain_context import get_chain_context
from programmable_tokens.assembler import TransactionAssembler
from programmable_tokens.blueprint import BlueprintRegistry, SubstandardCatalog
from programmable_tokens.bootstrap import BootstrapCatalog
from programmable_tokens.builder import PlanBuilder
from programmable_tokens.chain_context import CardanoChainContext
from programmable_tokens.indexer import BlockfrostIndexer
from programmable_tokens.parameterizer import ScriptCache
from programmable_tokens.service import TokenIssuanceService


logger = logging.getLogger(__name__)

# Global protocol state
_blueprints: BlueprintRegistry | None = None
_catalog: BootstrapCatalog | None = None
_substandards: SubstandardCatalog | None = None
_script_cache = ScriptCache()
_service: TokenIssuanceService | None = None


def load_protocol_state():
    """
    Load blueprint, bootstrap descriptors and substandards.

    Raises:
        BlueprintMissing: If any artifact is missing or malformed
    """
    global _blueprints, _catalog, _substandards, _service
    _blueprints = BlueprintRegistry.load(settings.blueprint_path)
    _catalog = BootstrapCatalog.load(
        settings.bootstrap_dir, settings.network.value, settings.default_protocol_tx_hash
    )
    _substandards = SubstandardCatalog.load(settings.substandards_dir)
    _service = None
    logger.info(
        f"Protocol state loaded: {len(_catalog.all())} versions, active {_catalog.active().tx_hash}, "
        f"substandards {_substandards.names()}"
    )


def protocol_status() -> dict:
    """Loaded state of the protocol artifacts, for health reporting"""
    status = {
        "blueprint_loaded": _blueprints is not None,
        "bootstrap_loaded": _catalog is not None,
        "substandards_loaded": _substandards is not None,
    }
    if _catalog is not None:
        status["active_version"] = _catalog.active().tx_hash
    return status


def get_blueprint_registry() -> BlueprintRegistry:
    if _blueprints is None:
        raise HTTPException(status_code=503, detail="Protocol blueprint not loaded")
    return _blueprints


def get_bootstrap_catalog() -> BootstrapCatalog:
    if _catalog is None:
        raise HTTPException(status_code=503, detail="Protocol bootstrap not loaded")
    return _catalog


def get_substandard_catalog() -> SubstandardCatalog:
    if _substandards is None:
        raise HTTPException(status_code=503, detail="Substandards not loaded")
    return _substandards


def get_issuance_service(
    chain_context: CardanoChainContext = Depends(get_chain_context),
    blueprints: BlueprintRegistry = Depends(get_blueprint_registry),
    catalog: BootstrapCatalog = Depends(get_bootstrap_catalog),
    substandards: SubstandardCatalog = Depends(get_substandard_catalog),
) -> TokenIssuanceService:
    """
    Get or initialize the issuance service.

    Returns:
        TokenIssuanceService wired to Blockfrost and the loaded protocol state
    """
    global _service
    if _service is None:
        _service = TokenIssuanceService(
            catalog=catalog,
            substandards=substandards,
            assembler=TransactionAssembler(blueprints, chain_context.cardano_network, _script_cache),
            indexer=BlockfrostIndexer(chain_context.get_api()),
            builder=PlanBuilder(chain_context.get_context()),
            indexer_timeout=settings.indexer_timeout_seconds,
        )
    return _service
