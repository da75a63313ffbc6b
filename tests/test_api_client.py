"""Tests for the Modrinth request builders and client response handling."""

import json
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import pytest

from minebrew.exceptions import APIError, APIRateLimitError, APIServerError
from minebrew.services import (
    HashLookupRequest,
    ListVersionsRequest,
    ModrinthClient,
    SearchRequest,
)
from minebrew.services.api_client import MODRINTH_BASE_URL
from tests.fakes import make_version_dict


class FakeResponse:
    def __init__(self, status: int, payload: Any = None, url: str = "https://x") -> None:
        self.status = status
        self._payload = payload
        self.url = url

    async def json(self) -> Any:
        return self._payload

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class FakeSession:
    """Returns queued responses and records requested URLs."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.closed = False

    def get(self, url: str, params: Optional[Dict[str, str]] = None):
        self.requests.append((url, params or {}))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def test_search_request_builds_facets() -> None:
    request = SearchRequest("sodium").version("1.19").version("1.19.2")

    params = request.params()

    assert request.endpoint() == f"{MODRINTH_BASE_URL}/search"
    assert params["query"] == "sodium"
    assert params["limit"] == "5"
    assert params["index"] == "relevance"
    assert json.loads(params["facets"]) == [
        ["versions:1.19", "versions:1.19.2"],
        ["project_type:mod"],
    ]


def test_search_request_with_category_and_no_project_type() -> None:
    request = SearchRequest("sodium").category("fabric").project_type(None).index("downloads")

    params = request.params()

    assert params["index"] == "downloads"
    assert json.loads(params["facets"]) == [["categories:fabric"]]


def test_search_request_rejects_invalid_values() -> None:
    with pytest.raises(ValueError):
        SearchRequest("")
    with pytest.raises(ValueError):
        SearchRequest("sodium").index("random")
    with pytest.raises(ValueError):
        SearchRequest("sodium").limit(0)


def test_list_versions_request_encodes_filters_as_json_arrays() -> None:
    request = ListVersionsRequest("AANobbMI").game_version("1.19").loader("fabric")

    assert request.endpoint() == f"{MODRINTH_BASE_URL}/project/AANobbMI/version"
    assert request.params() == {
        "game_versions": '["1.19"]',
        "loaders": '["fabric"]',
    }


def test_hash_lookup_request() -> None:
    request = HashLookupRequest("abc").algorithm("sha512")

    assert request.endpoint() == f"{MODRINTH_BASE_URL}/version_file/abc"
    assert request.params() == {"algorithm": "sha512"}
    with pytest.raises(ValueError):
        HashLookupRequest("abc").algorithm("md5")


async def test_search_parses_hits() -> None:
    payload = {
        "hits": [{"project_id": "AANobbMI", "slug": "sodium", "title": "Sodium"}],
        "offset": 0,
        "limit": 5,
        "total_hits": 1,
    }
    session = FakeSession([FakeResponse(200, payload)])
    client = ModrinthClient(session=session)

    response = await client.search("sodium", "1.19")

    assert response.query == "sodium"
    assert [hit.slug for hit in response.hits] == ["sodium"]
    url, params = session.requests[0]
    assert url.endswith("/search")
    assert "versions:1.19" in params["facets"]


async def test_list_versions_parses_versions_and_handles_404() -> None:
    session = FakeSession([FakeResponse(200, [make_version_dict()]), FakeResponse(404)])
    client = ModrinthClient(session=session)

    versions = await client.list_versions("AANobbMI", "1.19", loader="fabric")
    missing = await client.list_versions("nope", "1.19")

    assert versions[0].project_id == "AANobbMI"
    assert session.requests[0][1]["loaders"] == '["fabric"]'
    assert missing == []


async def test_get_version_by_hash_returns_none_when_unknown() -> None:
    session = FakeSession([FakeResponse(404)])
    client = ModrinthClient(session=session)

    assert await client.get_version_by_hash("f" * 40) is None
    assert session.requests[0][1] == {"algorithm": "sha1"}


@pytest.mark.parametrize(
    ("status", "error"),
    [(429, APIRateLimitError), (503, APIServerError), (400, APIError)],
)
async def test_error_statuses_raise(status: int, error: type) -> None:
    client = ModrinthClient(session=FakeSession([FakeResponse(status)]))

    with pytest.raises(error) as excinfo:
        await client.search("sodium", "1.19")

    assert excinfo.value.context["status_code"] == status


async def test_transport_errors_are_wrapped() -> None:
    session = FakeSession([aiohttp.ClientConnectionError("refused")])
    client = ModrinthClient(session=session)

    with pytest.raises(APIError, match="refused"):
        await client.search("sodium", "1.19")


async def test_malformed_payload_raises_api_error() -> None:
    session = FakeSession([FakeResponse(200, [{"project_id": "P1"}])])
    client = ModrinthClient(session=session)

    with pytest.raises(APIError):
        await client.list_versions("P1", "1.19")


async def test_injected_session_is_not_closed() -> None:
    session = FakeSession([])

    async with ModrinthClient(session=session):
        pass

    assert not session.closed
