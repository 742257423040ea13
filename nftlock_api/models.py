"""
Pydantic models for API responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LockStatusResponse(BaseModel):
    """Lock flag of a token, as returned by the contract."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"examples": [{"isLocked": True}]},
    )

    is_locked: bool = Field(..., alias="isLocked", description="Whether the token is locked")


class ErrorResponse(BaseModel):
    """Error body for failed queries."""

    error: str = Field(..., description="Error kind")
    detail: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "validation_error",
                    "detail": "Token id must be a non-negative integer"
                }
            ]
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status (ok/degraded)")
    version: str = Field(..., description="API version")
    network: str = Field(..., description="Configured network label")
    evm_rpc: bool = Field(..., description="EVM RPC connectivity")
    contract_address: Optional[str] = Field(None, description="LockableNFT contract address")
