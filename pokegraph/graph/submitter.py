# -*- coding: utf-8 -*-
"""
Mutation submission with identity feedback.

Serializes a preprocessed document, sends it to the store as one
commit-on-success mutation, and feeds the placeholder -> node id mapping the
store returns back into the IdentityCache. Nothing is resolved unless the
whole submission committed, so a failed document can be retried and will
reuse the same placeholders.

The store is anything with mutate(payload: bytes) -> MutationResult
(Neo4jStore in production, an in-memory fake in tests).
"""

# Standard library
from typing import Any, Dict, Protocol

# Local
from pokegraph.graph.identity_cache import PLACEHOLDER_PREFIX, IdentityCache
from pokegraph.graph.preprocessor import URL_FIELD
from pokegraph.utils.dataclasses import MutationResult
from pokegraph.utils.errors import SubmissionError
from pokegraph.utils.io import encode_payload
from pokegraph.utils.logger import get_logger

logger = get_logger(__name__)


class GraphStore(Protocol):
    """Mutation side of the graph store."""

    def mutate(self, payload: bytes) -> MutationResult:
        ...


class MutationSubmitter:
    """Submit preprocessed documents and resolve their placeholders."""

    def __init__(self, store: GraphStore, cache: IdentityCache):
        self.store = store
        self.cache = cache

    def submit(self, document: Dict[str, Any]) -> MutationResult:
        """
        Submit one document as one atomic mutation.

        Args:
            document: Preprocessed document tree (every object has a uid)

        Returns:
            The store's MutationResult

        Raises:
            SubmissionError: store unreachable, mutation rejected or not
                committed; the cache is left untouched
            ConsistencyViolation: the store put a known URL on a different node
        """
        url = document.get(URL_FIELD)
        payload = encode_payload(document)
        logger.debug(f"sending mutation for {url}: {len(payload)} bytes")

        try:
            result = self.store.mutate(payload)
        except Exception as e:
            raise SubmissionError(url, f"could not mutate: {e}") from e

        if not result.committed:
            raise SubmissionError(url, "mutation was not committed")

        assigned = {f"{PLACEHOLDER_PREFIX}{label}": uid for label, uid in result.uids.items()}
        for placeholder, uid in assigned.items():
            logger.debug(f"{placeholder} -> {uid}")

        resolved = self.cache.resolve_all(assigned)
        logger.debug(f"committed {url}: {len(assigned)} ids returned, {resolved} urls resolved")
        return result
