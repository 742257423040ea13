"""
NFT Lock Status API - HTTP read gateway for LockableNFT contracts.

Provides REST endpoints for:
- Querying a token's lock flag (GET /api/isTokenLocked/{token_id})
- Health checks (GET /health)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .contract import ContractCaller, Web3ContractCaller
from .errors import GatewayError, ServiceNotConfigured
from .gateway import GatewayConfig, LockStatusGateway
from .models import ErrorResponse, HealthResponse, LockStatusResponse

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed token id"},
    502: {"model": ErrorResponse, "description": "RPC unreachable or contract call failed"},
    503: {"model": ErrorResponse, "description": "Contract not configured"},
    504: {"model": ErrorResponse, "description": "Contract call timed out"},
}


def create_app(
    settings: Optional[Settings] = None,
    caller: Optional[ContractCaller] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration (loaded from the environment if omitted)
        caller: Contract caller to use instead of the web3 adapter
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        contract_caller = caller
        if contract_caller is None and settings.contract_address:
            contract_caller = Web3ContractCaller(settings)

        app.state.caller = contract_caller
        app.state.gateway = (
            LockStatusGateway(contract_caller, GatewayConfig.from_settings(settings))
            if contract_caller is not None
            else None
        )

        if app.state.gateway is None:
            logger.warning("CONTRACT_ADDRESS not configured; lock queries disabled")

        logger.info(
            "API started",
            version=__version__,
            host=settings.host,
            port=settings.port,
            network=settings.network_name,
            contract=settings.contract_address,
            method=settings.contract_method,
        )

        yield

        logger.info("API stopped")

    app = FastAPI(
        title="NFT Lock Status API",
        description="HTTP read gateway for LockableNFT lock status",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.caller = None
    app.state.gateway = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        response_model=HealthResponse,
    )
    app.add_api_route(
        "/api/isTokenLocked/{token_id}",
        is_token_locked,
        methods=["GET"],
        response_model=LockStatusResponse,
        responses=ERROR_RESPONSES,
    )
    return app


def get_gateway(request: Request) -> LockStatusGateway:
    """Get the gateway built at startup."""
    gateway: Optional[LockStatusGateway] = request.app.state.gateway
    if gateway is None:
        raise ServiceNotConfigured("CONTRACT_ADDRESS not configured")
    return gateway


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render gateway failures as error bodies."""
    body = ErrorResponse(error=exc.kind, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# ============================================================================
# Health Check
# ============================================================================


async def health_check(request: Request) -> HealthResponse:
    """
    Check API health and connectivity.

    Returns service status and connectivity to the EVM RPC.
    """
    settings: Settings = request.app.state.settings
    caller = request.app.state.caller

    evm_ok = False
    if caller is not None and hasattr(caller, "check_connectivity"):
        evm_ok = await caller.check_connectivity()

    return HealthResponse(
        status="ok" if evm_ok else "degraded",
        version=__version__,
        network=settings.network_name,
        evm_rpc=evm_ok,
        contract_address=settings.contract_address,
    )


# ============================================================================
# Lock Status
# ============================================================================


async def is_token_locked(
    token_id: str,
    gateway: LockStatusGateway = Depends(get_gateway),
) -> LockStatusResponse:
    """
    Query whether a token is locked.

    Calls the contract's view method with the token id and returns
    its boolean result unchanged.
    """
    status = await gateway.get_lock_status(token_id)
    return LockStatusResponse(is_locked=status.locked)


app = create_app()


# ============================================================================
# Entry Point
# ============================================================================


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "nftlock_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
