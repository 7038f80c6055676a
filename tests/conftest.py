# -*- coding: utf-8 -*-
"""
Shared fixtures for the pokegraph test suite.

FakeGraphStore stands in for Neo4j: it MERGEs URL nodes on url, CREATEs
anonymous nodes, and answers every mutation with placeholder label -> node id,
just like Neo4jStore.mutate.
"""

# Standard library
import sys
import threading
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Third-party
import pytest

# Local
from pokegraph.graph.identity_cache import PLACEHOLDER_PREFIX, IdentityCache
from pokegraph.utils.dataclasses import MutationResult
from pokegraph.utils.io import decode_payload, save_json


class FakeGraphStore:
    """In-memory graph store with MERGE-on-url semantics."""

    def __init__(self, merge_on_url: bool = True):
        self.merge_on_url = merge_on_url
        self.nodes = {}          # node id -> properties
        self.url_index = {}      # url -> node id
        self.payloads = []
        self._next_id = 0
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        self._next_id += 1
        return f"0x{self._next_id:x}"

    def mutate(self, payload: bytes) -> MutationResult:
        tree = decode_payload(payload)
        with self._lock:
            self.payloads.append(tree)
            uids = {}
            self._apply(tree, uids)
        return MutationResult(uids=uids, committed=True)

    def _apply(self, value, uids):
        if isinstance(value, list):
            for item in value:
                self._apply(item, uids)
            return
        if not isinstance(value, dict):
            return

        uid = value["uid"]
        url = value.get("url")
        if uid.startswith(PLACEHOLDER_PREFIX):
            label = uid[len(PLACEHOLDER_PREFIX):]
            if label not in uids:
                if url and self.merge_on_url and url in self.url_index:
                    uids[label] = self.url_index[url]
                else:
                    uids[label] = self._new_id()
                    if url:
                        self.url_index[url] = uids[label]
            node_id = uids[label]
        else:
            node_id = uid

        props = self.nodes.setdefault(node_id, {})
        for key, item in value.items():
            if isinstance(item, (dict, list)):
                self._apply(item, uids)
            elif key != "uid":
                props[key] = item

    def nodes_with_url(self, url: str):
        return [node_id for node_id, props in self.nodes.items() if props.get("url") == url]


@pytest.fixture
def cache():
    """Fresh identity cache per test."""
    return IdentityCache()


@pytest.fixture
def fake_store():
    return FakeGraphStore()


@pytest.fixture
def api_data(tmp_path):
    """
    Small api-data tree:

        pokemon/1   bulbasaur -> type/12, type/4, ability/65
        pokemon/4   charmander -> type/10
        type/10     fire
        type/12     grass
    """
    root = tmp_path / "api" / "v2"
    documents = {
        "pokemon/1": {
            "id": 1,
            "name": "bulbasaur",
            "names": [{"name": "Bulbasaur", "language": {"name": "en", "url": "/api/v2/language/9/"}}],
            "types": [
                {"slot": 1, "type": {"name": "grass", "url": "/api/v2/type/12/"}},
                {"slot": 2, "type": {"name": "poison", "url": "/api/v2/type/4/"}},
            ],
            "abilities": [
                {"is_hidden": True, "slot": 3, "ability": {"name": "chlorophyll", "url": "/api/v2/ability/34/"}},
            ],
        },
        "pokemon/4": {
            "id": 4,
            "name": "charmander",
            "types": [{"slot": 1, "type": {"name": "fire", "url": "/api/v2/type/10/"}}],
        },
        "type/10": {"id": 10, "name": "fire", "pokemon": [
            {"slot": 1, "pokemon": {"name": "charmander", "url": "/api/v2/pokemon/4/"}},
        ]},
        "type/12": {"id": 12, "name": "grass", "pokemon": [
            {"slot": 1, "pokemon": {"name": "bulbasaur", "url": "/api/v2/pokemon/1/"}},
        ]},
    }
    for location, data in documents.items():
        save_json(data, root / location / "index.json")

    # Listing files that sit next to the entity directories
    save_json({"count": 2}, root / "pokemon" / "index.json")
    save_json({"pokemon": "/api/v2/pokemon/"}, root / "index.json")
    return root
