"""
Microservices for the ModredIP backend.

This package contains the FastAPI services that front the ModredIP contract,
Pinata and the Yakoa API.

Modules:
    api: Main REST API (registration, licensing, royalties, IPFS, Yakoa)
    yakoa_proxy: Standalone CORS proxy for Yakoa token registration
"""
