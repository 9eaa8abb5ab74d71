"""
Protocol Endpoints

Read-only endpoints exposing the deployed protocol: blueprint validators,
bootstrap versions and available substandards.
"""

from fastapi import APIRouter, Depends

from api.dependencies.protocol import get_blueprint_registry, get_bootstrap_catalog, get_substandard_catalog
from api.schemas.protocol import (
    BlueprintResponse,
    BlueprintValidatorItem,
    ProtocolVersionsResponse,
    SubstandardsResponse,
)
from programmable_tokens.blueprint import BlueprintRegistry, SubstandardCatalog
from programmable_tokens.bootstrap import BootstrapCatalog


router = APIRouter()


@router.get(
    "/blueprint",
    response_model=BlueprintResponse,
    summary="Get protocol blueprint",
    description="Compiled (unparameterized) protocol validators.",
)
async def get_blueprint(blueprints: BlueprintRegistry = Depends(get_blueprint_registry)) -> BlueprintResponse:
    items = [
        BlueprintValidatorItem(title=v.title, compiled_code=v.compiled_code, hash=v.hash)
        for v in blueprints.validators()
    ]
    return BlueprintResponse(validators=items, total=len(items))


@router.get(
    "/bootstrap",
    summary="Get active protocol bootstrap",
    description="Bootstrap descriptor of the active protocol version.",
)
async def get_bootstrap(catalog: BootstrapCatalog = Depends(get_bootstrap_catalog)) -> dict:
    return catalog.active().to_json_dict()


@router.get(
    "/versions",
    response_model=ProtocolVersionsResponse,
    summary="List protocol versions",
    description="All deployed protocol versions; any of them can be pinned with `protocolTxHash`.",
)
async def list_versions(catalog: BootstrapCatalog = Depends(get_bootstrap_catalog)) -> ProtocolVersionsResponse:
    versions = [descriptor.to_json_dict() for descriptor in catalog.all()]
    return ProtocolVersionsResponse(
        active_tx_hash=catalog.active().tx_hash,
        versions=versions,
        total=len(versions),
    )


@router.get(
    "/substandards",
    response_model=SubstandardsResponse,
    summary="List substandards",
)
async def list_substandards(
    substandards: SubstandardCatalog = Depends(get_substandard_catalog),
) -> SubstandardsResponse:
    return SubstandardsResponse(substandards=substandards.names())
