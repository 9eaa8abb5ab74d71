from fastapi import APIRouter

from api.routers.api_v1.endpoints import issue_token, protocol


api_router = APIRouter()

api_router.include_router(issue_token.router, prefix="/issue-token", tags=["Issue Token"])
api_router.include_router(protocol.router, prefix="/protocol", tags=["Protocol"])
