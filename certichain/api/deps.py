from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException

from certichain.core.config import Settings, settings as _settings
from certichain.core.tokens import OPERATOR_SCOPE, decode_access
from certichain.db.session import get_db  # noqa: F401  (re-exported for routers)
from certichain.services.issuance import IssuanceClient
from certichain.services.ledger import Ledger
from certichain.services.memory_ledger import InMemoryLedger
from certichain.services.metadata import MetadataStore
from certichain.services.registry import InstitutionRegistry
from certichain.services.verification import VerificationResolver
from certichain.services.web3_ledger import Web3Ledger

_ledger: Optional[Ledger] = None
_metadata_store: Optional[MetadataStore] = None


def get_settings() -> Settings:
    return _settings


def build_ledger(settings: Settings) -> Ledger:
    backend = settings.LEDGER_BACKEND.strip().lower()
    if backend == "memory":
        return InMemoryLedger(settings.MEMORY_LEDGER_ACCOUNT)
    if backend == "web3":
        return Web3Ledger(settings)
    raise RuntimeError(f"Unknown LEDGER_BACKEND: {settings.LEDGER_BACKEND}")


def get_ledger(settings: Settings = Depends(get_settings)) -> Ledger:
    global _ledger
    if _ledger is None:
        _ledger = build_ledger(settings)
    return _ledger


def get_metadata_store(settings: Settings = Depends(get_settings)) -> MetadataStore:
    global _metadata_store
    if _metadata_store is None:
        _metadata_store = MetadataStore(settings)
    return _metadata_store


async def close_clients() -> None:
    global _ledger, _metadata_store
    if _ledger is not None:
        await _ledger.aclose()
        _ledger = None
    if _metadata_store is not None:
        await _metadata_store.aclose()
        _metadata_store = None


def get_resolver(
    ledger: Ledger = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
    metadata: MetadataStore = Depends(get_metadata_store),
) -> VerificationResolver:
    return VerificationResolver(ledger, settings, metadata)


def get_issuance(ledger: Ledger = Depends(get_ledger), settings: Settings = Depends(get_settings)) -> IssuanceClient:
    return IssuanceClient(ledger, settings)


def get_institutions(
    ledger: Ledger = Depends(get_ledger), settings: Settings = Depends(get_settings)
) -> InstitutionRegistry:
    return InstitutionRegistry(ledger, settings)


# ----------------------------------------------------------------------
# Bearer token from the Authorization header (no OAuth2PasswordBearer)
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    return parts[1]


def get_current_operator(
    token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    payload = decode_access(token, settings)
    if not payload or payload.get("scope") != OPERATOR_SCOPE:
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload
