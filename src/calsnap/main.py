import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from calsnap.config import settings
from calsnap.constants import APP_SETTINGS
from calsnap.errors import FileTooLargeError, InputValidationError, OracleError
from calsnap.oracle.client import OracleClient
from calsnap.pipeline import EventExtractionPipeline
from calsnap.routes import calendar, extract, health

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Every error response carries a JSON body with an "error" field."""

    @app.exception_handler(InputValidationError)
    async def input_validation_handler(request: Request, exc: InputValidationError):
        logger.warning("Rejected %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(FileTooLargeError)
    async def file_too_large_handler(request: Request, exc: FileTooLargeError):
        logger.warning("Rejected %s: %s", request.url.path, exc)
        return JSONResponse(status_code=413, content={"error": str(exc)})

    @app.exception_handler(OracleError)
    async def oracle_error_handler(request: Request, exc: OracleError):
        logger.error("Oracle failure (%s) on %s: %s", exc.kind, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": f"Failed to extract events: {exc}"})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})


def create_app(oracle: Optional[OracleClient] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        oracle: Oracle client to use; the Gemini client is built at startup when omitted

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title=APP_SETTINGS.APP_NAME,
        version=APP_SETTINGS.VERSION,
        description=APP_SETTINGS.DESCRIPTION
    )

    if oracle is not None:
        app.state.pipeline = EventExtractionPipeline(oracle)

    @app.on_event("startup")
    async def startup_event():
        """Validate configuration and build the oracle client on startup"""
        if oracle is not None:
            return
        from calsnap.config import validate_required_keys
        from calsnap.oracle.client import GeminiOracleClient
        try:
            validate_required_keys()
            logger.info("Configuration validation passed")
        except ValueError as e:
            logger.error("Configuration validation failed: %s", e)
            raise
        app.state.pipeline = EventExtractionPipeline(GeminiOracleClient())

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup resources on shutdown"""
        logger.info("Shutting down gracefully...")
        pipeline = getattr(app.state, "pipeline", None)
        if pipeline is not None:
            await pipeline.oracle.aclose()

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {APP_SETTINGS.APP_NAME}"}

    register_exception_handlers(app)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(extract.router, tags=["Extraction"])
    app.include_router(calendar.router, prefix="/generate-calendar", tags=["Calendar"])

    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(
        "calsnap.main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.APP_ENV == "development"
    )


if __name__ == "__main__":
    main()
