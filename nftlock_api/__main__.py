"""
Entry point for running the API CLI as a module.

Usage:
    python -m nftlock_api serve --env-file .env.sepolia
"""

from nftlock_api.cli import main

if __name__ == "__main__":
    main()
