import asyncio

import httpx

from certichain.services.hashing import fingerprint, to_hex
from certichain.services.metadata import MetadataStore, build_metadata_document, normalize_pointer


def _store(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MetadataStore(settings, client=client)


def test_normalize_pointer():
    assert normalize_pointer("ipfs://QmAbc") == "QmAbc"
    assert normalize_pointer("QmAbc") == "QmAbc"
    assert normalize_pointer("ipfs://QmPlaceholderImage") is None
    assert normalize_pointer("") is None
    assert normalize_pointer(None) is None


def test_fetch_reads_gateway(settings):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"name": "Certificate: Math"})

    store = _store(settings, handler)
    assert asyncio.run(store.fetch("ipfs://QmAbc")) == {"name": "Certificate: Math"}
    assert seen == [f"{settings.IPFS_GATEWAY_URL.rstrip('/')}/QmAbc"]


def test_fetch_never_raises(settings):
    def broken(request):
        return httpx.Response(500)

    def not_json(request):
        return httpx.Response(200, content=b"<html>")

    def unreachable(request):
        raise httpx.ConnectError("down", request=request)

    for handler in (broken, not_json, unreachable):
        assert asyncio.run(_store(settings, handler).fetch("QmAbc")) is None


def test_placeholder_is_not_fetched(settings):
    def handler(request):
        raise AssertionError("gateway must not be called")

    assert asyncio.run(_store(settings, handler).fetch("QmPlaceholderDoc")) is None


def test_metadata_document_hides_name():
    doc = build_metadata_document("Jane Doe", "Math", "2020-09-01")
    attributes = {a["trait_type"]: a["value"] for a in doc["attributes"]}
    assert attributes["Student Name Hash"] == to_hex(fingerprint("Jane Doe"))
    assert attributes["Enrollment Date"] == 1598918400
    assert "Jane Doe" not in str(doc)
