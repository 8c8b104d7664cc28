"""
FastAPI backend for IP registration, licensing, royalties and Yakoa monitoring.

This module provides REST API endpoints that execute ModredIP contract
writes with the server-side signer, pin content to IPFS, and forward IP
assets to Yakoa for infringement monitoring.

Module Input:
    - JSON request bodies with camelCase fields (as sent by the frontend)
    - HTTP multipart/form-data file uploads
    - Configuration from settings module

Module Output:
    - JSON responses with transaction and registration results
    - HTTP status codes for success/failure
    - Structured error messages

Endpoints:
    GET  /                                          - Service banner and endpoint map
    GET  /health                                    - Service health check
    GET  /api/cors-test                             - Echo request origin
    POST /api/register                              - Register IP on Etherlink + Yakoa
    POST /api/license                               - Mint license (alias)
    POST /api/license/mint                          - Mint license
    POST /api/royalty/pay                           - Pay revenue into an IP asset
    POST /api/royalty/claim                         - Claim accrued royalties
    GET  /api/assets                                - List IP assets
    GET  /api/assets/{token_id}                     - Get one IP asset
    GET  /api/licenses                              - List licenses
    GET  /api/licenses/{license_id}                 - Get one license
    POST /api/ipfs/upload                           - Pin a file to IPFS
    POST /api/ipfs/metadata                         - Pin NFT metadata JSON
    POST /api/yakoa/register                        - Proxy a registration to Yakoa
    POST /api/yakoa/submit                          - Register with proxy/direct/mock fallback
    GET  /api/yakoa/token/{token_id}                - Fetch a Yakoa token record
    GET  /api/infringement/{token_id}               - Infringement status by Yakoa id
    GET  /api/infringement/contract/{addr}/{id}     - Infringement status by contract token
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from web3.exceptions import ContractLogicError

from MODRED.core.cors import get_cors_config, is_origin_allowed
from MODRED.core.exceptions import (
    ConfigError, ModredError, PinningError, ValidationError, YakoaError
)
from MODRED.core.logging_config import get_logger, setup_root_logger
from MODRED.core.serialization import to_json_safe
from MODRED.core.settings import settings
from MODRED.services.chain import ModredIPClient
from MODRED.services.ipfs import (
    PinataClient, build_nft_metadata, get_ipfs_gateway_url, parse_metadata
)
from MODRED.services.registration import LicenseService, RegistrationService, RoyaltyService
from MODRED.services.yakoa import YakoaClient, YakoaRegistrar, build_token_id

# Setup logging
setup_root_logger()
logger = get_logger(__name__)

START_TIME = time.time()

REGISTER_PARAMS = "ipHash, metadata, isEncrypted, modredIpContractAddress"
LICENSE_PARAMS = (
    "tokenId, royaltyPercentage, duration, commercialUse, terms, modredIpContractAddress"
)

# Initialize FastAPI app
app = FastAPI(
    title="ModredIP Backend API",
    description="IP registration, licensing and royalties on Etherlink with Yakoa monitoring",
    version=settings.version
)

app.add_middleware(CORSMiddleware, **get_cors_config())


@app.middleware("http")
async def log_blocked_origins(request: Request, call_next):
    is_origin_allowed(request.headers.get("origin"))
    return await call_next(request)


# Service instances (initialized on startup)
chain_client: Optional[ModredIPClient] = None
yakoa_client: Optional[YakoaClient] = None
yakoa_registrar: Optional[YakoaRegistrar] = None
pinata_client: Optional[PinataClient] = None
registration_service: Optional[RegistrationService] = None
license_service: Optional[LicenseService] = None
royalty_service: Optional[RoyaltyService] = None


# ============== Request/Response Models ==============

class RegisterRequest(BaseModel):
    """Request model for IP registration."""
    ipHash: str = Field(..., min_length=1)
    metadata: str = Field(..., min_length=1)
    isEncrypted: bool
    modredIpContractAddress: str = Field(..., min_length=1)


class LicenseRequest(BaseModel):
    """Request model for license minting."""
    tokenId: int = Field(..., gt=0)
    royaltyPercentage: int = Field(..., gt=0)
    duration: int = Field(..., gt=0)
    commercialUse: bool
    terms: str = Field(..., min_length=1)
    modredIpContractAddress: str = Field(..., min_length=1)


class PayRevenueRequest(BaseModel):
    """Request model for revenue payment. Amount is in native XTZ."""
    tokenId: int = Field(..., gt=0)
    amount: Union[str, float]
    modredIpContractAddress: Optional[str] = None


class ClaimRoyaltiesRequest(BaseModel):
    """Request model for royalty claims."""
    tokenId: int = Field(..., gt=0)
    modredIpContractAddress: Optional[str] = None


class MetadataRequest(BaseModel):
    """Request model for pinning NFT metadata."""
    ipHash: str = Field(..., min_length=1)
    name: Optional[str] = None
    description: Optional[str] = None
    isEncrypted: bool = False


class UploadResponse(BaseModel):
    """Response model for a pinned file."""
    success: bool
    cid: str
    url: str
    gatewayUrl: str
    message: str


class MetadataResponse(BaseModel):
    """Response model for pinned metadata."""
    success: bool
    cid: str
    uri: str
    gatewayUrl: str
    metadata: Dict[str, Any]


class HealthResponse(BaseModel):
    """Response model for service health check."""
    status: str
    timestamp: str
    uptime: float
    environment: str
    services: Dict[str, str]


# ============== Error Handlers ==============

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report missing or falsy body fields the way the frontend expects."""
    path = request.url.path.rstrip("/")
    if path == "/api/register":
        params = REGISTER_PARAMS
    elif path in ("/api/license", "/api/license/mint"):
        params = LICENSE_PARAMS
    else:
        fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
        params = ", ".join(dict.fromkeys(fields)) or "request body"

    logger.warning(f"Rejected {request.method} {path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Missing required parameters: {params}"}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Not found", "message": f"Route {request.url.path} not found"}
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Server error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.is_development else "Something went wrong",
        }
    )


# ============== Startup/Shutdown ==============

@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.

    Missing credentials do not stop the server: the affected endpoints
    answer 503 until the configuration is fixed.

    Side Effects:
        - Initializes global service instances
        - Logs missing configuration
    """
    global chain_client, yakoa_client, yakoa_registrar, pinata_client
    global registration_service, license_service, royalty_service

    missing = settings.validate_config()
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)}")

    chain_client = ModredIPClient()
    yakoa_client = YakoaClient()
    yakoa_registrar = YakoaRegistrar(client=yakoa_client)

    try:
        pinata_client = PinataClient()
    except ConfigError as e:
        logger.warning(f"IPFS uploads disabled: {e.message}")
        pinata_client = None

    registration_service = RegistrationService(chain_client, yakoa_client)
    license_service = LicenseService(chain_client)
    royalty_service = RoyaltyService(chain_client)

    logger.info(f"ModredIP backend started ({settings.node_env}) on port {settings.port}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown complete")


def _require(service: Any, name: str) -> Any:
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} service not initialized"
        )
    return service


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=to_json_safe(content))


# ============== Health Endpoints ==============

@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "ModredIP Backend API",
        "version": settings.version,
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "health": "/health",
            "register": "/api/register",
            "license": "/api/license",
            "royalty": "/api/royalty",
            "assets": "/api/assets",
            "licenses": "/api/licenses",
            "ipfs": "/api/ipfs",
            "yakoa": "/api/yakoa",
            "infringement": "/api/infringement",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint for service monitoring.

    Returns:
        HealthResponse: Uptime, environment and per-service init status
    """
    services_status = {
        "chain_client": "initialized" if chain_client else "not_initialized",
        "yakoa_client": "initialized" if yakoa_client else "not_initialized",
        "pinata_client": "initialized" if pinata_client else "not_initialized",
    }
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.time() - START_TIME, 3),
        environment=settings.node_env,
        services=services_status,
    )


@app.get("/api/cors-test", tags=["Health"])
async def cors_test(request: Request):
    return {
        "message": "CORS is working",
        "origin": request.headers.get("origin"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ============== Registration Endpoints ==============

@app.post("/api/register", tags=["Registration"])
def register_ip(request: RegisterRequest):
    """
    Register an IP asset on Etherlink, then submit it to Yakoa.

    Returns:
        message, etherlink {txHash, ipAssetId, explorerUrl, blockNumber,
        ipHash} and the yakoa response when a token id was extracted
    """
    service = _require(registration_service, "Registration")
    logger.info(f"Registration request for {request.ipHash}")

    try:
        result = service.register(
            ip_hash=request.ipHash,
            metadata=request.metadata,
            is_encrypted=request.isEncrypted,
            contract_address=request.modredIpContractAddress,
        )
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message, e.details)
    except ModredError as e:
        logger.error(f"Registration failed: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Registration failed", e.message)

    return to_json_safe(result)


# ============== License Endpoints ==============

@app.post("/api/license", tags=["License"])
@app.post("/api/license/mint", tags=["License"])
def mint_license(request: LicenseRequest):
    """Mint a license; failures come back as 500 with the service message."""
    service = _require(license_service, "License")
    logger.info(f"License request for token {request.tokenId}")

    result = service.mint(
        token_id=request.tokenId,
        royalty_percentage=request.royaltyPercentage,
        duration=request.duration,
        commercial_use=request.commercialUse,
        terms=request.terms,
        contract_address=request.modredIpContractAddress,
    )

    if not result["success"]:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, result["message"], result["error"])

    return to_json_safe({
        "message": result["message"],
        "data": {
            "txHash": result["txHash"],
            "blockNumber": result["blockNumber"],
            "explorerUrl": result["explorerUrl"],
        },
    })


# ============== Royalty Endpoints ==============

@app.post("/api/royalty/pay", tags=["Royalty"])
def pay_revenue(request: PayRevenueRequest):
    service = _require(royalty_service, "Royalty")
    try:
        return to_json_safe(service.pay(request.tokenId, request.amount, request.modredIpContractAddress))
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message, e.details)
    except ModredError as e:
        logger.error(f"Revenue payment failed: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Revenue payment failed", e.message)


@app.post("/api/royalty/claim", tags=["Royalty"])
def claim_royalties(request: ClaimRoyaltiesRequest):
    service = _require(royalty_service, "Royalty")
    try:
        return to_json_safe(service.claim(request.tokenId, request.modredIpContractAddress))
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message, e.details)
    except ModredError as e:
        logger.error(f"Royalty claim failed: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Royalty claim failed", e.message)


# ============== Contract Read Endpoints ==============

def _with_metadata(asset: Dict[str, Any]) -> Dict[str, Any]:
    return {
        **asset,
        "parsedMetadata": parse_metadata(asset.get("metadata", "")),
        "gatewayUrl": get_ipfs_gateway_url(asset.get("ipHash", "")),
    }


@app.get("/api/assets", tags=["Assets"])
def list_assets(contractAddress: Optional[str] = Query(None)):
    """List every IP asset with its metadata resolved."""
    client = _require(chain_client, "Chain")
    try:
        assets = [_with_metadata(a) for a in client.list_ip_assets(contractAddress)]
    except ModredError as e:
        logger.error(f"Failed to load IP assets: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load IP assets", e.message)
    return to_json_safe({"assets": assets, "count": len(assets)})


@app.get("/api/assets/{token_id}", tags=["Assets"])
def get_asset(token_id: int, contractAddress: Optional[str] = Query(None)):
    client = _require(chain_client, "Chain")
    try:
        asset = client.get_ip_asset(token_id, contractAddress)
    except ContractLogicError:
        return _error(status.HTTP_404_NOT_FOUND, f"IP asset {token_id} not found")
    except ModredError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load IP asset", e.message)
    return to_json_safe(_with_metadata(asset))


@app.get("/api/licenses", tags=["Assets"])
def list_licenses(contractAddress: Optional[str] = Query(None)):
    client = _require(chain_client, "Chain")
    try:
        licenses = client.list_licenses(contractAddress)
    except ModredError as e:
        logger.error(f"Failed to load licenses: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load licenses", e.message)
    return to_json_safe({"licenses": licenses, "count": len(licenses)})


@app.get("/api/licenses/{license_id}", tags=["Assets"])
def get_license(license_id: int, contractAddress: Optional[str] = Query(None)):
    client = _require(chain_client, "Chain")
    try:
        record = client.get_license(license_id, contractAddress)
    except ContractLogicError:
        return _error(status.HTTP_404_NOT_FOUND, f"License {license_id} not found")
    except ModredError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load license", e.message)
    return to_json_safe(record)


# ============== IPFS Endpoints ==============

@app.post("/api/ipfs/upload", response_model=UploadResponse, tags=["IPFS"])
async def upload_to_ipfs(file: UploadFile = File(...)):
    """Pin an uploaded file to IPFS through Pinata."""
    client = _require(pinata_client, "IPFS")

    data = await file.read()
    if not data:
        return _error(status.HTTP_400_BAD_REQUEST, "Uploaded file is empty")

    try:
        pinned = await run_in_threadpool(
            client.pin_file, data, file.filename or "upload", file.content_type
        )
    except PinningError as e:
        return _error(status.HTTP_502_BAD_GATEWAY, "Failed to upload to IPFS", e.message)

    return UploadResponse(
        success=True,
        cid=pinned["cid"],
        url=pinned["uri"],
        gatewayUrl=get_ipfs_gateway_url(pinned["uri"]),
        message="File uploaded to IPFS",
    )


@app.post("/api/ipfs/metadata", response_model=MetadataResponse, tags=["IPFS"])
def upload_metadata(request: MetadataRequest):
    client = _require(pinata_client, "IPFS")
    metadata = build_nft_metadata(request.ipHash, request.name, request.description, request.isEncrypted)

    try:
        pinned = client.pin_json(metadata, name=f"{metadata['name']}.json")
    except PinningError as e:
        return _error(status.HTTP_502_BAD_GATEWAY, "Failed to upload metadata to IPFS", e.message)

    return MetadataResponse(
        success=True,
        cid=pinned["cid"],
        uri=pinned["uri"],
        gatewayUrl=get_ipfs_gateway_url(pinned["uri"]),
        metadata=metadata,
    )


# ============== Yakoa Endpoints ==============

@app.post("/api/yakoa/register", tags=["Yakoa"])
def yakoa_register(body: Dict[str, Any]):
    """Forward a browser registration body to Yakoa with the server's API key."""
    client = _require(yakoa_client, "Yakoa")
    try:
        return client.proxy_register(body)
    except YakoaError as e:
        if e.status_code is None:
            logger.error(f"Proxy error: {e.message}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "error": "Internal server error", "details": e.message}
            )
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.message, "details": e.response}
        )


@app.post("/api/yakoa/submit", tags=["Yakoa"])
def yakoa_submit(asset_info: Dict[str, Any]):
    registrar = _require(yakoa_registrar, "Yakoa")
    return to_json_safe(registrar.register_ip_asset(asset_info))


@app.get("/api/yakoa/token/{token_id}", tags=["Yakoa"])
def yakoa_token(token_id: str):
    client = _require(yakoa_client, "Yakoa")
    try:
        return client.get_token(token_id)
    except YakoaError as e:
        return _error(e.status_code or status.HTTP_502_BAD_GATEWAY, e.message, e.response)


# ============== Infringement Endpoints ==============

def _infringement_response(token_id: str):
    client = _require(yakoa_client, "Yakoa")
    try:
        return to_json_safe(client.get_infringement_status(token_id))
    except YakoaError as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            return _error(status.HTTP_404_NOT_FOUND, "Token not found in Yakoa", {"id": token_id})
        logger.error(f"Infringement lookup failed for {token_id}: {e.message}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch infringement status",
            e.message
        )


@app.get("/api/infringement/contract/{contract_address}/{token_id}", tags=["Infringement"])
def infringement_by_contract(contract_address: str, token_id: str):
    return _infringement_response(build_token_id(contract_address, token_id))


@app.get("/api/infringement/{token_id}", tags=["Infringement"])
def infringement_status(token_id: str):
    return _infringement_response(token_id)


# ============== Server Entry Point ==============

def run_server(host: str = "0.0.0.0", port: Optional[int] = None, reload: bool = False):
    """
    Run the FastAPI server using uvicorn.

    Args:
        host (str): Host to bind to
        port (Optional[int]): Port to bind to (default: settings.port)
        reload (bool): Enable auto-reload for development
    """
    import uvicorn

    port = port or settings.port
    logger.info(f"Starting ModredIP API server on {host}:{port}")
    uvicorn.run(
        "MODRED.microservices.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run_server(reload=True)
