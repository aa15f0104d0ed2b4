# certichain/core/config.py
import os
from typing import ClassVar

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'certichain.db')}")


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    DATABASE_URL: str = Field(default_factory=_default_database_url)

    # ledger
    LEDGER_BACKEND: str = Field(default_factory=lambda: os.getenv("LEDGER_BACKEND", "web3"))
    RPC_URL: str = Field(default_factory=lambda: os.getenv("RPC_URL", "https://rpc-amoy.polygon.technology"))
    CHAIN_ID: int = Field(default_factory=lambda: _env_int("CHAIN_ID", "80002"))
    REGISTRY_ADDRESS: str = Field(
        default_factory=lambda: os.getenv("REGISTRY_ADDRESS", "0x36b0FC46a71C29BCae123B3a11a3B5222d7E53b5")
    )
    CERTIFICATE_ADDRESS: str = Field(
        default_factory=lambda: os.getenv("CERTIFICATE_ADDRESS", "0xEDE1ade75d0FBE2Ade2001966966Efd190b90C20")
    )
    ISSUER_PRIVATE_KEY: str = Field(default_factory=lambda: os.getenv("ISSUER_PRIVATE_KEY", ""))
    MEMORY_LEDGER_ACCOUNT: str = Field(
        default_factory=lambda: os.getenv("MEMORY_LEDGER_ACCOUNT", "0x00000000000000000000000000000000000000a1")
    )
    LEDGER_TIMEOUT_SECONDS: float = Field(default_factory=lambda: _env_float("LEDGER_TIMEOUT_SECONDS", "10"))
    RECEIPT_TIMEOUT_SECONDS: float = Field(default_factory=lambda: _env_float("RECEIPT_TIMEOUT_SECONDS", "120"))
    EVENT_POLL_SECONDS: float = Field(default_factory=lambda: _env_float("EVENT_POLL_SECONDS", "4"))
    EVENT_START_BLOCK: int = Field(default_factory=lambda: _env_int("EVENT_START_BLOCK", "0"))

    # off-ledger metadata
    IPFS_GATEWAY_URL: str = Field(
        default_factory=lambda: os.getenv("IPFS_GATEWAY_URL", "https://gateway.pinata.cloud/ipfs")
    )
    METADATA_TIMEOUT_SECONDS: float = Field(default_factory=lambda: _env_float("METADATA_TIMEOUT_SECONDS", "5"))

    # http surface
    PUBLIC_BASE_URL: str = Field(default_factory=lambda: os.getenv("PUBLIC_BASE_URL", ""))
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    OPERATOR_USERNAME: str = Field(default_factory=lambda: os.getenv("OPERATOR_USERNAME", "operator"))
    OPERATOR_PASSWORD_HASH: str = Field(default_factory=lambda: os.getenv("OPERATOR_PASSWORD_HASH", ""))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    ERROR_DETAIL_MAX_CHARS: int = Field(default_factory=lambda: _env_int("ERROR_DETAIL_MAX_CHARS", "160"))


settings = Settings()
