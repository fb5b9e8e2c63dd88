from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, inference, logs, wallet
from .config import settings
from .core.controller import get_controller
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    controller = get_controller()
    controller.describe_environment()
    yield
    await controller.aclose()


# Create FastAPI app
app = FastAPI(
    title="0G Inference Client",
    description="Wallet-authenticated client for the 0G inference marketplace",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(wallet.router, tags=["Wallet"])
app.include_router(inference.router, tags=["Inference"])
app.include_router(logs.router, tags=["Logs"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "0G Inference Client",
        "version": "0.1.0",
        "description": "Wallet-authenticated client for the 0G inference marketplace",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "zg_inference.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
