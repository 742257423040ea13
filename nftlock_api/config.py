"""
Configuration for the NFT Lock Status API.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables. One env file
    per deployment (e.g. `.env.sepolia`, `.env.ganache`) selects the network;
    the settings object is frozen once loaded.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # API Server
    host: str = Field(
        default="127.0.0.1",
        description="API host (127.0.0.1 for local only, 0.0.0.0 for external)",
    )
    port: int = Field(default=3000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode (auto-reload)")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="CORS allowed origins"
    )

    # EVM
    network_name: str = Field(
        default="sepolia",
        description="Label of the network this deployment talks to"
    )
    evm_rpc_url: str = Field(
        default="http://127.0.0.1:7545",
        description="EVM JSON-RPC URL"
    )

    # Contract
    contract_address: Optional[str] = Field(
        default=None,
        description="LockableNFT contract address"
    )
    contract_abi_path: Optional[Path] = Field(
        default=None,
        description="ABI JSON or Truffle/Hardhat build artifact (built-in ABI if unset)"
    )
    contract_method: str = Field(
        default="isTokenLocked",
        description="View method returning the lock flag"
    )

    # Upstream call policy
    call_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Deadline for a lock status query, retries included"
    )
    unavailable_retries: int = Field(
        default=1,
        ge=0,
        le=1,
        description="Retries when the RPC endpoint is unreachable"
    )
    retry_backoff_seconds: float = Field(
        default=0.25,
        ge=0,
        description="Delay before retrying an unreachable endpoint"
    )

    @field_validator("contract_address")
    @classmethod
    def _checksum_contract_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not Web3.is_address(value):
            raise ValueError(f"Invalid contract address: {value}")
        return Web3.to_checksum_address(value)


# Env file used by get_settings(); inherited by uvicorn reload workers
ENV_FILE_VAR = "NFTLOCK_ENV_FILE"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings(_env_file=os.environ.get(ENV_FILE_VAR, ".env"))


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from a specific env file, or the default `.env`."""
    if env_file is None:
        return get_settings()
    return Settings(_env_file=env_file)
