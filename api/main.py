import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse


# Load environment variables from .env file
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
load_dotenv(ENV_FILE)

from api.config import settings
from api.dependencies import protocol as protocol_state
from api.routers.api_v1.api import api_router
from api.schemas.token import TokenErrorResponse
from programmable_tokens.exceptions import BadRequest


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Loads the protocol blueprint, bootstrap versions and substandards;
    startup fails if any of them is missing.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Startup
    print("\n" + "=" * 60)
    print(f"🚀 Starting {settings.api_title} v{settings.api_version}")
    print("=" * 60)
    print(f"Environment: {settings.environment}")
    print(f"Network: {settings.network.value}")
    print(f"Blockfrost API key configured: {'Yes' if settings.blockfrost_api_key else 'No'}")

    try:
        protocol_state.load_protocol_state()
        print(f"✅ Protocol blueprint loaded from {settings.blueprint_path}")
        print(f"✅ Bootstrap versions loaded from {settings.bootstrap_dir}")
    except Exception as e:
        print(f"❌ Protocol initialization failed: {str(e)}")
        raise  # Fail fast without protocol artifacts

    print(f"\n📚 API Documentation: http://127.0.0.1:{settings.api_port}/docs")
    print("=" * 60 + "\n")

    yield  # Application runs here

    # Shutdown
    print("\n" + "=" * 60)
    print("🛑 Shutting down API")
    print("=" * 60 + "\n")


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    contact=settings.contact,
    lifespan=lifespan,
)

root_router = APIRouter()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are client errors (400)"""
    messages = [f"{'.'.join(str(p) for p in err['loc'][1:])}: {err['msg']}" for err in exc.errors()]
    error = TokenErrorResponse(
        error="; ".join(messages) or "Invalid request",
        error_code=BadRequest.code,
        category=BadRequest.category,
    )
    return JSONResponse(status_code=400, content=error.model_dump(mode="json", exclude_none=True))


@app.get("/")
async def root():
    """Basic HTML response."""
    body = (
        "<html>"
        "<body style='padding: 10px;'>"
        "<h1>Welcome to the Programmable Tokens API</h1>"
        "<div>"
        "Check the docs: <a href='/docs'>here</a>"
        "</div>"
        "</body>"
        "</html>"
    )

    return HTMLResponse(content=body)


@app.get("/health")
async def health_check():
    """
    Health check endpoint reporting whether protocol state is loaded.

    Returns:
        - status: "healthy" when blueprint and bootstrap are loaded
        - api_version: API version
        - network: Configured Cardano network
    """
    protocol = protocol_state.protocol_status()
    health_status = {
        "status": "healthy",
        "api_version": settings.api_version,
        "environment": settings.environment,
        "network": settings.network.value,
        "protocol": protocol,
    }

    if not (protocol["blueprint_loaded"] and protocol["bootstrap_loaded"] and protocol["substandards_loaded"]):
        health_status["status"] = "unhealthy"
        return JSONResponse(content=health_status, status_code=503)

    return JSONResponse(content=health_status, status_code=200)


app.include_router(root_router)
app.include_router(api_router, prefix=settings.API_V1_STR)
