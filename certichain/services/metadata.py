# certichain/services/metadata.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from certichain.core.config import Settings
from certichain.services.hashing import DateInput, enrollment_epoch_seconds, fingerprint, to_hex

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "QmPlaceholder"


def normalize_pointer(pointer: Optional[str]) -> Optional[str]:
    pointer = (pointer or "").strip()
    if pointer.startswith("ipfs://"):
        pointer = pointer[len("ipfs://"):]
    pointer = pointer.lstrip("/")
    if not pointer or pointer.startswith(PLACEHOLDER_PREFIX):
        return None
    return pointer


class MetadataStore:
    """Read-only access to off-ledger certificate metadata through an IPFS gateway.

    Never raises: an unreachable gateway or a malformed document just means
    there is no metadata to show.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.METADATA_TIMEOUT_SECONDS)
        return self._client

    def url_for(self, pointer: str) -> str:
        return f"{self.settings.IPFS_GATEWAY_URL.rstrip('/')}/{pointer}"

    async def fetch(self, pointer: Optional[str]) -> Optional[Dict[str, Any]]:
        cid = normalize_pointer(pointer)
        if cid is None:
            return None
        try:
            response = await self._http().get(self.url_for(cid))
            response.raise_for_status()
            document = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("metadata %s unavailable: %s", cid, exc)
            return None
        if not isinstance(document, dict):
            logger.warning("metadata %s is not a JSON object", cid)
            return None
        return document

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def build_metadata_document(
    subject_name: str,
    course: str,
    enrollment_date: DateInput,
    image: str = "ipfs://QmPlaceholderImage",
) -> Dict[str, Any]:
    """JSON document an issuer uploads before minting; only the name fingerprint is included."""
    return {
        "name": f"Certificate: {course}",
        "description": f"Academic Certificate for {course}",
        "image": image,
        "attributes": [
            {"trait_type": "Student Name Hash", "value": to_hex(fingerprint(subject_name))},
            {"trait_type": "Course", "value": course},
            {"trait_type": "Enrollment Date", "value": enrollment_epoch_seconds(enrollment_date)},
        ],
    }
