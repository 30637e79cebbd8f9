# src/app.py
from fastapi import FastAPI, Request, Response
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from common.logger import logger
from common.config.settings import missing_required_env
from common.custom_exceptions.chart_analysis_error import ChartAnalysisError
from common.custom_exceptions.chart_analysis_handler import chart_analysis_error_handler
from common.monitoring.metrics import API_REQUESTS
from presentation.api.middleware.security import limiter
from presentation.api.routes import analysis, training


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting application...")
    missing = missing_required_env()
    if missing:
        # Reconciliation still works without an LLM; analysis routes answer 503.
        logger.error(f"Missing required environment variables: {', '.join(missing)}")

    yield
    logger.info("Shutting down application...")

app = FastAPI(
    title="ChartSight-Backend",
    version="0.1.0",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ChartAnalysisError, chart_analysis_error_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = route.path if route is not None else request.url.path
    API_REQUESTS.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    return response


# Include all routers
app.include_router(analysis.router, prefix="/api/v1")
app.include_router(training.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Add this block to run the server
if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host="0.0.0.0",  # Critical for external access
        port=8000,
        reload=True
    )
