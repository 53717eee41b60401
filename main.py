"""Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.error_handlers import pricing_exception_handler, validation_exception_handler
from src.api.routes import router
from src.database.db import init_db
from src.services.pricing_errors import PricingError
from src.utils.config import config
from src.utils.logger import clear_trace, create_trace

# Initialize database
init_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    try:
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}")
        raise
    yield
    # Shutdown


# Create FastAPI app
app = FastAPI(
    title="CS2 Skin Price Aggregator",
    description="Fee-inclusive price comparison across CS2 skin marketplaces",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(PricingError, pricing_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    """Give every request a trace id for its log entries."""
    trace_id = create_trace()
    try:
        response = await call_next(request)
    finally:
        clear_trace()
    response.headers["X-Trace-Id"] = trace_id
    return response


# Include API routes
app.include_router(router, prefix="/api", tags=["prices"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
