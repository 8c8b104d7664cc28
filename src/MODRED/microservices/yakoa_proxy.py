"""
Standalone Yakoa proxy for browser clients.

Browsers cannot call the Yakoa API directly (no CORS headers, and the API
key must stay server-side), so this small service forwards token
registrations with the configured key.

Endpoints:
    POST /api/yakoa/register  - Forward a token registration to Yakoa
    GET  /api/health          - Proxy health check
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from MODRED.core.cors import get_cors_config, is_origin_allowed
from MODRED.core.exceptions import YakoaError
from MODRED.core.logging_config import get_logger, setup_root_logger
from MODRED.core.settings import settings
from MODRED.services.yakoa import YakoaClient

setup_root_logger()
logger = get_logger(__name__)

app = FastAPI(
    title="Yakoa Proxy",
    description="CORS proxy for Yakoa token registration",
    version=settings.version
)

app.add_middleware(CORSMiddleware, **get_cors_config(extra_headers=["X-API-KEY"]))


@app.middleware("http")
async def log_blocked_origins(request: Request, call_next):
    is_origin_allowed(request.headers.get("origin"))
    return await call_next(request)


# Created on first use so tests can swap it out
yakoa_client: Optional[YakoaClient] = None


def get_client() -> YakoaClient:
    global yakoa_client
    if yakoa_client is None:
        yakoa_client = YakoaClient()
    return yakoa_client


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(status_code=exc.status_code, content={"error": "Method not allowed"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.post("/api/yakoa/register")
def register(body: Dict[str, Any]):
    """
    Forward a registration body to Yakoa unchanged.

    Returns:
        success, token_id, registration_status and details; upstream errors
        are relayed with their status code, network failures as 500
    """
    logger.info(f"Received registration request for {body.get('id')}")
    try:
        return get_client().proxy_register(body)
    except YakoaError as e:
        if e.status_code is None:
            logger.error(f"Proxy error: {e.message}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "error": "Internal server error", "details": e.message}
            )
        logger.warning(f"Yakoa rejected registration: {e.status_code}")
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.message, "details": e.response}
        )


@app.get("/api/health")
async def health():
    return {"status": "ok", "message": "Yakoa proxy server is running"}


def run_proxy(host: str = "0.0.0.0", port: Optional[int] = None):
    """Run the proxy with uvicorn (default port: settings.yakoa_proxy_port)."""
    import uvicorn

    port = port or settings.yakoa_proxy_port
    logger.info(f"Yakoa proxy server running on port {port}")
    uvicorn.run(
        "MODRED.microservices.yakoa_proxy:app",
        host=host,
        port=port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run_proxy()
