# -*- coding: utf-8 -*-
"""
Document source test suite.

DirectorySource runs against a temporary api-data tree; HttpSource runs
with requests.get patched, so no network access is needed.

Run: pytest tests/ingestion/test_sources.py -v
"""

# Standard library
from unittest.mock import Mock, patch

# Third-party
import pytest
import requests

# Local
from pokegraph.ingestion.sources import DirectorySource, HttpSource, join_location
from pokegraph.utils.dataclasses import ChildEntry
from pokegraph.utils.errors import RetrievalError

BASE_URL = "https://pokeapi.test/api/v2"


def json_response(data, status_code=200):
    response = Mock(status_code=status_code)
    response.json.return_value = data
    return response


@pytest.fixture
def mock_get():
    with patch('pokegraph.ingestion.sources.requests.get') as mock:
        yield mock


@pytest.fixture
def http_source():
    return HttpSource(base_url=BASE_URL, timeout=1, retry_attempts=3, delay=0)


def test_join_location():
    assert join_location("", "pokemon") == "pokemon"
    assert join_location("pokemon", "1") == "pokemon/1"
    assert join_location("/pokemon/", "", "1/") == "pokemon/1"


# ============================================================================
# DIRECTORY
# ============================================================================

class TestDirectorySource:
    """api-data checkout on disk."""

    def test_document_url_is_relative(self, api_data):
        source = DirectorySource(api_data)

        assert source.document_url("pokemon/1") == "/api/v2/pokemon/1/"
        assert DirectorySource(api_data, url_prefix="/v3/").document_url("type/5") == "/v3/type/5/"

    def test_list_root(self, api_data):
        entries = DirectorySource(api_data).list_children("")

        assert entries == [
            ChildEntry("index.json", False),
            ChildEntry("pokemon", True),
            ChildEntry("type", True),
        ]

    def test_list_type(self, api_data):
        entries = DirectorySource(api_data).list_children("pokemon")

        assert [e.name for e in entries if e.is_container] == ["1", "4"]

    def test_list_missing_location(self, api_data):
        with pytest.raises(RetrievalError) as exc_info:
            DirectorySource(api_data).list_children("berry")

        assert exc_info.value.location == "berry"

    def test_fetch_document(self, api_data):
        doc = DirectorySource(api_data).fetch_document("pokemon/1")

        assert doc["name"] == "bulbasaur"
        assert doc["types"][0]["type"]["url"] == "/api/v2/type/12/"

    def test_fetch_missing_document(self, api_data):
        with pytest.raises(RetrievalError, match="could not open") as exc_info:
            DirectorySource(api_data).fetch_document("pokemon/99")

        assert exc_info.value.location == "pokemon/99"
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_fetch_invalid_json(self, api_data):
        (api_data / "type" / "10" / "index.json").write_text("{\"id\": 10,", encoding="utf-8")

        with pytest.raises(RetrievalError, match="could not parse JSON"):
            DirectorySource(api_data).fetch_document("type/10")

    def test_fetch_non_object(self, api_data):
        (api_data / "type" / "10" / "index.json").write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(RetrievalError, match="expected a JSON object"):
            DirectorySource(api_data).fetch_document("type/10")


# ============================================================================
# HTTP
# ============================================================================

class TestHttpSource:
    """REST API with a patched requests.get."""

    def test_url_for(self, http_source):
        assert http_source.url_for("") == f"{BASE_URL}/"
        assert http_source.url_for("pokemon/1") == f"{BASE_URL}/pokemon/1/"

    def test_document_url_is_absolute(self, http_source):
        assert http_source.document_url("type/5") == f"{BASE_URL}/type/5/"
        assert http_source.document_url("/type/5/") == f"{BASE_URL}/type/5/"

    def test_list_root_kinds(self, http_source, mock_get):
        mock_get.return_value = json_response({
            "pokemon": f"{BASE_URL}/pokemon/",
            "ability": f"{BASE_URL}/ability/",
        })

        entries = http_source.list_children("")

        assert entries == [ChildEntry("ability", True), ChildEntry("pokemon", True)]
        mock_get.assert_called_once_with(f"{BASE_URL}/", timeout=1, headers=http_source.headers)

    def test_list_kind_fetches_all_in_one_page(self, http_source, mock_get):
        mock_get.side_effect = [
            json_response({"count": 2, "results": []}),
            json_response({"count": 2, "results": [
                {"name": "bulbasaur", "url": f"{BASE_URL}/pokemon/1/"},
                {"name": "ivysaur", "url": f"{BASE_URL}/pokemon/2/"},
            ]}),
        ]

        entries = http_source.list_children("pokemon")

        assert [e.name for e in entries] == ["1", "2"]
        assert all(e.is_container for e in entries)
        assert mock_get.call_args_list[1][0][0] == f"{BASE_URL}/pokemon/?limit=2"

    def test_list_document_has_no_children(self, http_source, mock_get):
        assert http_source.list_children("pokemon/1") == []
        mock_get.assert_not_called()

    def test_fetch_document(self, http_source, mock_get):
        mock_get.return_value = json_response({"id": 5, "name": "ground"})

        doc = http_source.fetch_document("type/5")

        assert doc == {"id": 5, "name": "ground"}
        assert mock_get.call_args[0][0] == f"{BASE_URL}/type/5/"

    def test_retry_after_timeout(self, http_source, mock_get):
        mock_get.side_effect = [requests.Timeout(), json_response({"id": 1})]

        assert http_source.fetch_document("pokemon/1") == {"id": 1}
        assert mock_get.call_count == 2

    def test_gives_up_after_retries(self, mock_get):
        source = HttpSource(base_url=BASE_URL, retry_attempts=2, delay=0)
        mock_get.side_effect = requests.Timeout()

        with pytest.raises(RetrievalError, match="after 2 attempts"):
            source.fetch_document("pokemon/1")

        assert mock_get.call_count == 2

    def test_http_error_status(self, http_source, mock_get):
        mock_get.return_value = json_response({}, status_code=404)

        with pytest.raises(RetrievalError, match="status code 404") as exc_info:
            http_source.fetch_document("pokemon/99999")

        assert exc_info.value.location == "pokemon/99999"

    def test_connection_error(self, http_source, mock_get):
        mock_get.side_effect = requests.ConnectionError("name resolution failed")

        with pytest.raises(RetrievalError, match="could not fetch"):
            http_source.fetch_document("pokemon/1")

        assert mock_get.call_count == 1

    def test_invalid_json_body(self, http_source, mock_get):
        response = json_response(None)
        response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = response

        with pytest.raises(RetrievalError, match="could not decode"):
            http_source.fetch_document("pokemon/1")

    def test_non_object_body(self, http_source, mock_get):
        mock_get.return_value = json_response(["not", "a", "document"])

        with pytest.raises(RetrievalError, match="expected a JSON object"):
            http_source.fetch_document("pokemon/1")
