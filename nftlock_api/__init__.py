"""
NFT Lock Status API - HTTP read gateway for LockableNFT contracts.

Provides REST endpoints for:
- Querying whether a token is locked
- Health checks
"""

__version__ = "0.1.0"
