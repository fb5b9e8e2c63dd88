import os

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field
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
        """Pick up the legacy private key variable used by the broker tooling."""

        super().model_post_init(__context)

        if not self.wallet_private_key:
            fallback = os.getenv("ZG_PRIVATE_KEY")
            if fallback:
                object.__setattr__(self, "wallet_private_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Wallet
    wallet_private_key: str = Field(
        default="",
        description="Hex private key for the local signing wallet",
        validation_alias=AliasChoices("wallet_private_key", "PRIVATE_KEY"),
    )
    wallet_rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint of an external signer (used when no private key is set)",
    )
    wallet_auto_approve: bool = Field(
        default=True,
        description="Grant eth_requestAccounts without prompting for the local wallet",
    )
    chain_rpc_url: str = Field(
        default="",
        description="Chain RPC used for eth_chainId and eth_getBalance lookups",
    )
    chain_id: int = Field(default=16601, description="Chain ID reported when no chain RPC is configured")

    # Broker
    broker_services: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Static service catalog: provider, endpoint, model, nonce, fee, acknowledged",
    )
    broker_catalog_path: str = Field(
        default="",
        description="Optional YAML file holding the service catalog",
    )

    # Inference
    inference_system_prompt: str = Field(
        default="You are a helpful assistant with a sense of humor.",
        description="System prompt prepended to every request (empty to omit)",
    )
    inference_user_message: str = Field(
        default="Tell me a short joke about programming.",
        description="Default user message for an inference run",
    )
    request_timeout_seconds: float = Field(default=120.0, description="HTTP timeout for gateway calls")
    strict_acknowledgment: bool = Field(
        default=False,
        description="Abort the run when provider acknowledgment fails",
    )
    header_aliases: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Override the canonical field -> header names table",
    )

    @property
    def has_local_wallet(self) -> bool:
        return bool(self.wallet_private_key)

    @property
    def has_remote_wallet(self) -> bool:
        return bool(self.wallet_rpc_url)

    @property
    def has_wallet(self) -> bool:
        return self.has_local_wallet or self.has_remote_wallet


# Global settings instance
settings = Settings()
