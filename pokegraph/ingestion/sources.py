# -*- coding: utf-8 -*-
"""
Document sources for the batch loader.

A source answers three questions for a "/"-separated location:
list_children(location) -> what is under it, fetch_document(location) -> the
parsed JSON of one entity, document_url(location) -> the URL other documents
use when they reference that entity. "" is the root, "pokemon" is an entity
type, "pokemon/1" is one document.

- DirectorySource reads a PokeAPI api-data checkout
  (<root>/<type>/<id>/index.json)
- HttpSource talks to the live REST API

Both raise RetrievalError for anything that fails, so the batch processor
can record the failure against the location and move on.

References in api-data files are relative ("/api/v2/type/5/"), the REST API
returns absolute ones ("https://pokeapi.co/api/v2/type/5/"). Each source
builds document URLs in the same form its own documents use.

Author: pokegraph contributors
Created: 2026-10-12
Modified: 2026-10-19

Examples:
    source = DirectorySource(Path("data/api-data/data/api/v2"))
    for entry in source.list_children(""):
        print(entry.name, entry.is_container)     # "ability", True
    doc = source.fetch_document("pokemon/1")
    source.document_url("pokemon/1")              # "/api/v2/pokemon/1/"

    source = HttpSource("https://pokeapi.co/api/v2")
    doc = source.fetch_document("type/5")
    source.document_url("type/5")                 # "https://pokeapi.co/api/v2/type/5/"

References:
    - PokeAPI v2 documentation: https://pokeapi.co/docs/v2
    - api-data layout: https://github.com/PokeAPI/api-data
"""
# Standard library
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

# Third-party
import requests

# Local
from pokegraph.graph.preprocessor import document_url
from pokegraph.utils.config import HTTP_CONFIG, LOADER_CONFIG
from pokegraph.utils.dataclasses import ChildEntry
from pokegraph.utils.errors import RetrievalError
from pokegraph.utils.io import load_json
from pokegraph.utils.logger import get_logger

logger = get_logger(__name__)

DOCUMENT_FILENAME = "index.json"


class DocumentSource(Protocol):
    """Retrieval side of the loader: listing and fetching documents."""

    def list_children(self, location: str) -> List[ChildEntry]:
        ...

    def fetch_document(self, location: str) -> Dict[str, Any]:
        ...

    def document_url(self, location: str) -> str:
        ...


def join_location(*parts: str) -> str:
    """Join location segments, ignoring empty ones."""
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


# ============================================================================
# DISK
# ============================================================================

class DirectorySource:
    """
    PokeAPI api-data directory tree.

    Every entity type is a directory, every entity a sub-directory holding
    index.json.
    """

    def __init__(self, root: Union[str, Path], url_prefix: str = LOADER_CONFIG["url_prefix"]):
        self.root = Path(root)
        self.url_prefix = url_prefix

    def document_url(self, location: str) -> str:
        return document_url(location, self.url_prefix)

    def list_children(self, location: str) -> List[ChildEntry]:
        path = self.root / location if location else self.root
        if not path.is_dir():
            raise RetrievalError(location or str(self.root), f"could not list files in {path}")

        return [
            ChildEntry(name=child.name, is_container=child.is_dir())
            for child in sorted(path.iterdir(), key=lambda p: p.name)
        ]

    def fetch_document(self, location: str) -> Dict[str, Any]:
        path = self.root / location / DOCUMENT_FILENAME
        try:
            data = load_json(path)
        except FileNotFoundError as e:
            raise RetrievalError(location, f"could not open {path}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RetrievalError(location, f"could not parse JSON in {path}: {e}") from e

        if not isinstance(data, dict):
            raise RetrievalError(location, f"expected a JSON object in {path}, got {type(data).__name__}")
        return data


# ============================================================================
# NETWORK
# ============================================================================

class HttpSource:
    """
    Live PokeAPI REST endpoints.

    The root lists resource kinds, a kind lists every resource (fetched in
    one page with ?limit=<count>), a document is GET <base_url>/<location>/.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        delay: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = (base_url or HTTP_CONFIG["base_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else HTTP_CONFIG["timeout"]
        self.retry_attempts = retry_attempts or HTTP_CONFIG["retry_attempts"]
        self.delay = delay if delay is not None else HTTP_CONFIG["delay_between_requests"]
        self.headers = headers or HTTP_CONFIG["headers"]

    def url_for(self, location: str) -> str:
        location = location.strip("/")
        return f"{self.base_url}/{location}/" if location else f"{self.base_url}/"

    def document_url(self, location: str) -> str:
        """Absolute URL, matching the references the API returns."""
        return self.url_for(location)

    def list_children(self, location: str) -> List[ChildEntry]:
        segments = [s for s in location.split("/") if s]

        if not segments:
            kinds = self._get_json(self.url_for(""), location)
            return [ChildEntry(name=kind, is_container=True) for kind in sorted(kinds)]

        if len(segments) == 1:
            count = self._get_json(self.url_for(location), location).get("count", 0)
            listing = self._get_json(f"{self.url_for(location)}?limit={count}", location)
            entries = []
            for result in listing.get("results", []):
                name = result.get("url", "").rstrip("/").rsplit("/", 1)[-1] or result.get("name")
                entries.append(ChildEntry(name=name, is_container=True))
            return entries

        # A single resource has nothing below it
        return []

    def fetch_document(self, location: str) -> Dict[str, Any]:
        data = self._get_json(self.url_for(location), location)
        if not isinstance(data, dict):
            raise RetrievalError(location, f"expected a JSON object, got {type(data).__name__}")
        return data

    def _get_json(self, url: str, location: str) -> Any:
        logger.debug(f"fetching {url}")

        for attempt in range(self.retry_attempts):
            try:
                response = requests.get(url, timeout=self.timeout, headers=self.headers)
            except requests.Timeout:
                logger.warning(f"Timeout for {url} (attempt {attempt + 1}/{self.retry_attempts})")
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.delay * 2)
                continue
            except requests.RequestException as e:
                raise RetrievalError(location, f"could not fetch {url}: {e}") from e

            if response.status_code != 200:
                raise RetrievalError(location, f"{url} returned status code {response.status_code}")
            try:
                return response.json()
            except ValueError as e:
                raise RetrievalError(location, f"could not decode payload from {url}") from e

        raise RetrievalError(location, f"failed to fetch {url} after {self.retry_attempts} attempts")
