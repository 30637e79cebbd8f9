# Exception Handler
from fastapi import Request
from fastapi.responses import JSONResponse
from common.custom_exceptions.chart_analysis_error import ChartAnalysisError
from common.logger import logger

async def chart_analysis_error_handler(request: Request, exc: ChartAnalysisError):
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "detail": exc.detail or "The chart could not be analyzed"
        }
    )
