"""Provider model-management client tests."""

import json

import httpx
import pytest

from vista.errors import ProviderUnavailable
from vista.llm.admin import ProviderAdmin


def make_admin(handler) -> ProviderAdmin:
    return ProviderAdmin("http://ollama.test/", transport=httpx.MockTransport(handler))


async def test_list_installed_reads_tags():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(
            200, json={"models": [{"name": "llava:34b"}, {"model": "gemma3:4b"}, {}]}
        )

    assert await make_admin(handler).list_installed() == ["llava:34b", "gemma3:4b"]


async def test_list_loaded_reads_running_models():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/ps"
        return httpx.Response(200, json={"models": [{"name": "nomic-embed-text:latest"}]})

    assert await make_admin(handler).list_loaded() == ["nomic-embed-text:latest"]


async def test_empty_model_list():
    admin = make_admin(lambda request: httpx.Response(200, json={"models": None}))

    assert await admin.list_loaded() == []


async def test_unload_requests_zero_keep_alive():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"done": True})

    await make_admin(handler).unload("llava:34b")

    assert seen == [("POST", "/api/generate", {"model": "llava:34b", "keep_alive": 0})]


async def test_server_error_raises_provider_unavailable():
    admin = make_admin(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ProviderUnavailable) as exc_info:
        await admin.list_loaded()

    assert exc_info.value.is_transient


async def test_connection_failure_raises_provider_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderUnavailable):
        await make_admin(handler).unload("llava:34b")


async def test_malformed_json_raises_provider_unavailable():
    admin = make_admin(lambda request: httpx.Response(200, text="not json"))

    with pytest.raises(ProviderUnavailable):
        await admin.list_installed()
