"""Pay-per-message Chat API - Main Application."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from config import Settings, get_settings
from errors import ApiError, api_error_handler
from paywall import PaymentGate, PaymentVerifier, SolanaRpcVerifier, get_pricing_table
from paywall.middleware import PAYMENT_REQUIRED_HEADER
from tiers import router as tiers_router
from chat import router as chat_router

logger = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    verifier: Optional[PaymentVerifier] = None,
) -> FastAPI:
    """Build the API with its payment gate."""
    settings = settings or get_settings()
    pricing = get_pricing_table()
    verifier = verifier or SolanaRpcVerifier(settings.solana_rpc_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info(
            "starting_chat_api",
            environment=settings.environment,
            port=settings.port,
            network=settings.network,
            recipient=settings.recipient_wallet[:8] + "...",
        )
        for route in pricing.items():
            logger.info("route_priced", method=route.method, path=route.path, price=route.price)
        yield
        close = getattr(verifier, "close", None)
        if close is not None:
            await close()
        logger.info("shutting_down_chat_api")

    app = FastAPI(
        title="Pay-per-message Chat API",
        version="1.0.0",
        description="Chat and tiered content paid per request with SPL token transfers",
        lifespan=lifespan,
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.dependency_overrides[get_settings] = lambda: settings

    # Payment gate first so CORS wraps the 402 responses too
    app.middleware("http")(PaymentGate(pricing, verifier, settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[PAYMENT_REQUIRED_HEADER],
    )

    app.include_router(tiers_router, prefix="/api", tags=["Tiers"])
    app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "network": settings.network,
            "recipient": settings.recipient_wallet,
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Pay-per-message Chat API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "routes": [route._asdict() for route in pricing.items()],
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=get_settings().port,
        reload=get_settings().debug
    )
