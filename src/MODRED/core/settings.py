"""
Centralized configuration management using Pydantic.

This module defines the Settings class which loads and validates application
configuration from environment variables or .env file.

Module Input:
    - Environment variables from OS
    - .env file in project root (optional)
    - Default values defined in class

Module Output:
    - Validated configuration object (singleton)
    - Helper methods for CORS origins and Yakoa endpoint resolution
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


DEFAULT_ALLOWED_ORIGINS = [
    "https://usemodred.vercel.app",
    "https://usemodred.vercel.app/",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:4173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:4173",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Attributes:
        Server Configuration:
            port (int): HTTP port for the backend API (default: 5000)
            node_env (str): "development" or "production"

        CORS Configuration:
            allowed_origins (List[str]): Base list of allowed origins
            frontend_url (Optional[str]): Extra deployed frontend origin
            additional_cors_origins (str): Comma-separated extra origins

        Yakoa Configuration:
            yakoa_api_key (Optional[str]): API key sent as X-API-KEY
            yakoa_subdomain (str): Sandbox subdomain (default: "docs-demo")
            yakoa_network (str): Network path segment (default: "docs-demo")
            yakoa_proxy_url (Optional[str]): Proxy tried before the direct API
            yakoa_proxy_port (int): Port of the standalone proxy (default: 3001)
            yakoa_mock_fallback (bool): Return a mock registration when
                neither proxy nor direct API are reachable

        Pinata Configuration:
            pinata_jwt (Optional[str]): Bearer token for pinning uploads
            ipfs_gateway (str): Public gateway for ipfs:// resolution

        Chain Configuration:
            rpc_provider_url (str): Etherlink RPC endpoint
            chain_id (int): EVM chain id (default: 128123)
            wallet_private_key (Optional[str]): Server-side signer key
            modred_ip_contract (Optional[str]): Default ModredIP address

        Logging Configuration:
            log_level (str): Minimum log level (default: "INFO")
            log_dir (Path): Directory for log files (default: "logs")
            log_file (str): Log file name (default: "app.log")
    """

    # ---------------- Server ----------------
    port: int = 5000
    node_env: str = "development"
    version: str = "1.0.0"

    # ---------------- CORS ----------------
    allowed_origins: List[str] = list(DEFAULT_ALLOWED_ORIGINS)
    frontend_url: Optional[str] = None
    additional_cors_origins: str = ""

    # ---------------- Yakoa ----------------
    yakoa_api_key: Optional[str] = None
    yakoa_subdomain: str = "docs-demo"
    yakoa_network: str = "docs-demo"
    yakoa_proxy_url: Optional[str] = None
    yakoa_proxy_port: int = 3001
    yakoa_mock_fallback: bool = True
    yakoa_timeout_seconds: float = 15.0
    yakoa_default_email: str = "creator@modredip.com"

    # ---------------- Pinata / IPFS ----------------
    pinata_jwt: Optional[str] = None
    pinata_api_key: Optional[str] = None
    pinata_secret_key: Optional[str] = None
    pinata_api_url: str = "https://api.pinata.cloud"
    ipfs_gateway: str = "https://gateway.pinata.cloud"
    pinata_max_retries: int = 3
    pinata_retry_delay: float = 1.0
    pinata_timeout_seconds: float = 60.0

    # ---------------- Etherlink ----------------
    rpc_provider_url: str = "https://node.ghostnet.etherlink.com"
    chain_id: int = 128123
    block_explorer_url: str = "https://testnet.explorer.etherlink.com"
    wallet_private_key: Optional[str] = None
    modred_ip_contract: Optional[str] = None
    tx_receipt_timeout: int = 120

    # ---------------- Backend URL (used by the UI) ----------------
    backend_url: str = "http://localhost:5000"

    # ---------------- Logging ----------------
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_file: str = "app.log"

    # ---------------- Pydantic Settings ----------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---------------- Helper Methods ----------------
    @property
    def is_production(self) -> bool:
        return self.node_env.strip().lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.node_env.strip().lower() == "development"

    def get_cors_origins(self) -> List[str]:
        """
        Build the full list of allowed CORS origins.

        Merges the base list with FRONTEND_URL and the comma-separated
        ADDITIONAL_CORS_ORIGINS value, preserving order and dropping blanks
        and duplicates.

        Returns:
            List[str]: Allowed origins
        """
        origins = list(self.allowed_origins)

        if self.frontend_url:
            origins.append(self.frontend_url)

        if self.additional_cors_origins:
            origins.extend(
                o.strip() for o in self.additional_cors_origins.split(",")
            )

        seen = set()
        result = []
        for origin in origins:
            if origin and origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    def get_yakoa_base_url(self) -> str:
        """
        Get the Yakoa sandbox base URL for the configured network.

        Returns:
            str: Base URL without trailing slash

        Example:
            >>> settings.get_yakoa_base_url()
            'https://docs-demo.ip-api-sandbox.yakoa.io/docs-demo'
        """
        return (
            f"https://{self.yakoa_subdomain}.ip-api-sandbox.yakoa.io/"
            f"{self.yakoa_network}"
        )

    def get_private_key(self) -> str:
        """
        Get the signer key with a 0x prefix.

        Raises:
            ConfigError: If WALLET_PRIVATE_KEY is not set
        """
        if not self.wallet_private_key:
            raise ConfigError(
                "WALLET_PRIVATE_KEY is required for contract writes",
                details={"setting": "wallet_private_key"}
            )
        key = self.wallet_private_key.strip()
        return key if key.startswith("0x") else f"0x{key}"

    def validate_config(self) -> List[str]:
        """
        Report missing integration credentials.

        Returns:
            List[str]: Names of unset environment variables (empty when
            everything is configured). Never raises; the caller decides.
        """
        required = {
            "YAKOA_API_KEY": self.yakoa_api_key,
            "PINATA_JWT": self.pinata_jwt or (self.pinata_api_key and self.pinata_secret_key),
            "WALLET_PRIVATE_KEY": self.wallet_private_key,
        }
        return [name for name, value in required.items() if not value]


# Singleton instance shared across the app
settings = Settings()
