"""Client configuration."""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from config import DEFAULT_RPC_URL, DEFAULT_TOKEN_MINT


class ClientSettings(BaseSettings):
    """Client settings loaded from CLIENT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_url: str = "http://localhost:3001"
    solana_rpc_url: str = DEFAULT_RPC_URL
    network: str = "mainnet-beta"
    token_mint: str = DEFAULT_TOKEN_MINT
    token_decimals: int = 6
    price_per_message: int = 1000
    history_limit: int = 10
    keypair_path: Optional[str] = None
    request_timeout: float = 120.0


@lru_cache
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance."""
    return ClientSettings()
