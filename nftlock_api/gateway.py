"""
Lock status gateway.

Validates a token id, runs one bounded read-only contract call and
normalizes every failure into a `GatewayError`.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Union

import structlog

from .config import Settings
from .contract import ContractCaller
from .errors import (
    GatewayError,
    UpstreamCallError,
    UpstreamTimeout,
    UpstreamUnavailable,
    ValidationError,
)

logger = structlog.get_logger()

UINT256_MAX = 2**256 - 1

_TOKEN_ID_RE = re.compile(r"[0-9]+")


def parse_token_id(raw: Union[str, int]) -> int:
    """
    Parse a token id into a uint256.

    Only plain ASCII decimal digits are accepted: no sign, whitespace,
    decimal point or exponent.

    Raises:
        ValidationError: if the id is malformed or out of range
    """
    if isinstance(raw, bool):
        raise ValidationError("Token id must be a non-negative integer")

    if isinstance(raw, int):
        token_id = raw
    elif isinstance(raw, str):
        if not raw:
            raise ValidationError("Token id is required")
        if not _TOKEN_ID_RE.fullmatch(raw):
            raise ValidationError("Token id must be a non-negative integer")
        token_id = int(raw)
    else:
        raise ValidationError("Token id must be a non-negative integer")

    if token_id < 0:
        raise ValidationError("Token id must be a non-negative integer")
    if token_id > UINT256_MAX:
        raise ValidationError("Token id exceeds uint256 range")
    return token_id


@dataclass(frozen=True)
class GatewayConfig:
    """Call policy of the gateway."""

    method: str = "isTokenLocked"
    timeout_seconds: float = 5.0
    unavailable_retries: int = 1
    retry_backoff_seconds: float = 0.25

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayConfig":
        return cls(
            method=settings.contract_method,
            timeout_seconds=settings.call_timeout_seconds,
            unavailable_retries=settings.unavailable_retries,
            retry_backoff_seconds=settings.retry_backoff_seconds,
        )


@dataclass(frozen=True)
class LockStatus:
    """Result of a lock status query."""

    token_id: int
    locked: bool


class LockStatusGateway:
    """
    Read-proxy for the contract's lock flag.

    Stateless between requests: concurrent queries share only the caller
    and the frozen config.
    """

    def __init__(self, caller: ContractCaller, config: GatewayConfig):
        self.caller = caller
        self.config = config

    async def get_lock_status(self, raw_token_id: Union[str, int]) -> LockStatus:
        """
        Query whether a token is locked.

        The deadline covers the whole query, including a retry.

        Raises:
            ValidationError: malformed token id (no outbound call is made)
            UpstreamUnavailable: RPC endpoint unreachable
            UpstreamTimeout: deadline exceeded
            UpstreamCallError: revert, RPC error or unexpected return value
        """
        try:
            token_id = parse_token_id(raw_token_id)
        except ValidationError as e:
            logger.info("Rejected token id", token_id=str(raw_token_id), error=e.message)
            raise

        try:
            result = await asyncio.wait_for(
                self._call(token_id),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                "Lock status query timed out",
                token_id=token_id,
                timeout=self.config.timeout_seconds,
            )
            raise UpstreamTimeout(
                f"Contract call did not complete within {self.config.timeout_seconds:g}s"
            ) from e
        except GatewayError as e:
            logger.warning(
                "Lock status query failed",
                token_id=token_id,
                kind=e.kind,
                error=e.message,
            )
            raise

        if not isinstance(result, bool):
            logger.error(
                "Unexpected return value",
                token_id=token_id,
                method=self.config.method,
                result_type=type(result).__name__,
            )
            raise UpstreamCallError(
                f"{self.config.method} returned {type(result).__name__}, expected bool"
            )

        logger.debug("Lock status queried", token_id=token_id, locked=result)
        return LockStatus(token_id=token_id, locked=result)

    async def _call(self, token_id: int) -> object:
        attempt = 0
        while True:
            try:
                return await self.caller.call(self.config.method, [token_id])
            except UpstreamUnavailable:
                if attempt >= self.config.unavailable_retries:
                    raise
                attempt += 1
                logger.info(
                    "Retrying unreachable RPC",
                    token_id=token_id,
                    attempt=attempt,
                    backoff=self.config.retry_backoff_seconds,
                )
                await asyncio.sleep(self.config.retry_backoff_seconds)
            except (GatewayError, asyncio.TimeoutError):
                raise
            except Exception as e:
                logger.exception("Unexpected contract caller error", token_id=token_id)
                raise UpstreamCallError("Contract call failed") from e
