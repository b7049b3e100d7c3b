"""FastAPI application for the Fact Oracle service."""

import contextlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file
load_dotenv()

from ..domain.services.oracle_service import UnknownDomainError
from ..domain.services.payment_gate import PaymentError
from ..infrastructure.dependencies import get_service_container
from .endpoints import health, oracle, stats

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Start source and payment providers, close them on shutdown."""
    container = get_service_container()
    try:
        await container.start()
    except Exception as e:
        logger.error(f"❌ Failed to start oracle providers: {e}")

    yield  # Application runs here

    await container.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Fact Oracle API",
    description="Payment-gated oracle APIs for sports results and Reddit data. Requires credits.",
    version=health.SERVICE_VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", oracle.CREDENTIAL_HEADER],
)


@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    """Render payment rejections as 402/401 with purchase guidance."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(UnknownDomainError)
async def unknown_domain_handler(request: Request, exc: UnknownDomainError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "not_found", "message": f"Unknown oracle domain: {exc.args[0]}"},
    )


# Include routers
app.include_router(health.router)
app.include_router(stats.router)
app.include_router(oracle.router)
