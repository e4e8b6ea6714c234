import os

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.pimlico_api_key:
            fallback = os.getenv("PIMLICO_KEY")
            if fallback:
                object.__setattr__(self, "pimlico_api_key", fallback)

    log_level: str = Field(default="INFO", description="Logging level")

    # Network endpoints
    rpc_url: str = Field(default="", description="Public JSON-RPC node URL")
    bundler_url: str = Field(default="", description="ERC-4337 bundler RPC URL")
    paymaster_url: str = Field(default="", description="ERC-7677 paymaster RPC URL")
    pimlico_api_key: str = Field(default="", description="Pimlico API key")

    chain_id: int = Field(default=1, description="Default chain id")
    default_entry_point_version: str = Field(
        default="v07",
        description="EntryPoint version used when an account does not pin one (v06, v07, v08)",
    )

    # Timeouts
    rpc_timeout_seconds: float = Field(default=30, description="JSON-RPC request timeout")
    receipt_timeout_seconds: float = Field(
        default=60,
        description="How long to poll for a UserOperation receipt",
    )
    receipt_poll_interval_seconds: float = Field(
        default=2,
        description="Delay between receipt polls",
    )


settings = Settings()
