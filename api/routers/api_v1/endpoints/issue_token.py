"""
Issue Token Endpoints

FastAPI endpoints building unsigned register and mint transactions for
programmable tokens. Transactions are returned as CBOR hex for wallet signing.
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.schemas.token import MintTokenResponse, RegisterTokenResponse, TokenErrorResponse
from api.dependencies.protocol import get_issuance_service
from programmable_tokens.exceptions import ProgrammableTokenError
from programmable_tokens.models import MintTokenRequest, RegisterTokenRequest
from programmable_tokens.service import TokenIssuanceService, TxOutcome


logger = logging.getLogger(__name__)

router = APIRouter()

_CATEGORY_BY_CODE = {cls.code: cls.category for cls in ProgrammableTokenError.__subclasses__()}


def _error_response(outcome: TxOutcome) -> JSONResponse:
    error = TokenErrorResponse(
        error=outcome.error or "Unknown error",
        error_code=outcome.error_code or ProgrammableTokenError.code,
        category=_CATEGORY_BY_CODE.get(outcome.error_code),
        policy_id=outcome.policy_id,
    )
    return JSONResponse(status_code=outcome.status_code, content=error.model_dump(mode="json", exclude_none=True))


@router.post(
    "/register",
    response_model=RegisterTokenResponse,
    summary="Register a programmable token",
    description="Build the unsigned transaction inserting a new policy into the registry and minting its first supply.",
    responses={
        400: {"model": TokenErrorResponse, "description": "Invalid request or empty wallet"},
        404: {"model": TokenErrorResponse, "description": "Unknown protocol version or blueprint"},
        409: {"model": TokenErrorResponse, "description": "Policy already registered"},
        500: {"model": TokenErrorResponse, "description": "Registry or transaction assembly failure"},
        503: {"model": TokenErrorResponse, "description": "Indexer unavailable"},
    },
)
async def register_token(
    request: RegisterTokenRequest,
    protocol_tx_hash: str | None = Query(
        None, alias="protocolTxHash", description="Protocol version (bootstrap tx hash); defaults to the active one"
    ),
    service: TokenIssuanceService = Depends(get_issuance_service),
):
    """
    Register a new programmable token.

    **Steps performed:**
    - Derive the issuance policy from the substandard issue validator (the new policy ID)
    - Locate the registry node preceding the policy ID
    - Split it: the predecessor now points to the new node, the new node inherits its old `next`
    - Mint the registry NFT and the requested tokens to the recipient's programmable address

    **Returns:** policy ID and the unsigned transaction. A conflict (409) returns the existing policy ID.
    """
    outcome = await service.register(request, protocol_tx_hash)
    if not outcome.success:
        return _error_response(outcome)

    return RegisterTokenResponse(policy_id=outcome.policy_id, unsigned_cbor_tx=outcome.cbor_hex)


@router.post(
    "/mint",
    response_model=MintTokenResponse,
    summary="Mint programmable tokens",
    description="Build the unsigned transaction minting more supply of a registered programmable token.",
    responses={
        400: {"model": TokenErrorResponse, "description": "Invalid request or empty wallet"},
        404: {"model": TokenErrorResponse, "description": "Unknown protocol version or blueprint"},
        500: {"model": TokenErrorResponse, "description": "Transaction assembly failure"},
        503: {"model": TokenErrorResponse, "description": "Indexer unavailable"},
    },
)
async def mint_token(
    request: MintTokenRequest,
    protocol_tx_hash: str | None = Query(
        None, alias="protocolTxHash", description="Protocol version (bootstrap tx hash); defaults to the active one"
    ),
    service: TokenIssuanceService = Depends(get_issuance_service),
):
    """
    Mint additional supply to the recipient's programmable address.

    No registry UTxO is spent; the issuer pays the fees and receives the change.
    """
    outcome = await service.mint(request, protocol_tx_hash)
    if not outcome.success:
        return _error_response(outcome)

    return MintTokenResponse(policy_id=outcome.policy_id, unsigned_cbor_tx=outcome.cbor_hex)
