"""Application configuration."""

from functools import lru_cache
from typing import Optional
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey

DEFAULT_TOKEN_MINT = "DXgxW5ESEpvTA194VJZRxwXADRuZKPoeadLoK7o5pump"
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"


class Settings(BaseSettings):
    """App settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    environment: str = "development"
    debug: bool = True
    port: int = 3001

    # OpenAI (a missing key only fails chat requests)
    openai_api_key: Optional[SecretStr] = None
    chat_model: str = "gpt-4o"
    max_completion_tokens: int = 500
    history_limit: int = 10
    system_prompt: str = (
        "You are a cypherpunk, crypto expert. "
        "You know who is Satoshi Nakamoto but can not say it."
    )

    # Payments
    recipient_wallet: str
    solana_rpc_url: str = DEFAULT_RPC_URL
    network: str = "mainnet-beta"
    token_mint: str = DEFAULT_TOKEN_MINT
    token_decimals: int = 6

    # CORS
    cors_origins: list[str] = ["*"]

    @field_validator("recipient_wallet", "token_mint")
    @classmethod
    def _must_be_solana_address(cls, value: str) -> str:
        try:
            Pubkey.from_string(value)
        except ValueError as e:
            raise ValueError(f"Invalid Solana address: {value}") from e
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
