# -*- coding: utf-8 -*-
"""
URL to node-identity cache for one load run.

Every document refers to other resources by URL, but the graph store only
knows nodes by the ids it assigns. The cache hands out a placeholder id
("_:<n>") the first time a URL is seen, returns the same placeholder to every
later caller until a submission tells us the store's real id, and from then
on returns the real id. Anonymous sub-objects get fresh placeholders that are
never tied to a URL.

THREAD SAFETY:
- One Lock guards the URL map, the placeholder index and the counter
- No I/O under the lock: log records are emitted after it is released

Author: pokegraph contributors
Created: 2026-10-12
Modified: 2026-10-19

Example:
    cache = IdentityCache()
    cache.get("/api/v2/type/5/")            # "_:1"
    cache.get("/api/v2/type/5/")            # "_:1" again
    cache.resolve("_:1", "4:f3a1:63")
    cache.get("/api/v2/type/5/")            # "4:f3a1:63"
"""

# Standard library
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Mapping, Optional, Union

# Local
from pokegraph.utils.errors import ConsistencyViolation
from pokegraph.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PREFIX = "_:"


@dataclass(frozen=True)
class Pending:
    """URL seen, store id not known yet."""
    placeholder: str


@dataclass(frozen=True)
class Resolved:
    """URL confirmed by the store."""
    uid: str


Identity = Union[Pending, Resolved]


def is_placeholder(uid: str) -> bool:
    """Check if a node id is a placeholder rather than a store-assigned id."""
    return uid.startswith(PLACEHOLDER_PREFIX)


class IdentityCache:
    """
    Thread-safe URL -> node id mapping with placeholder resolution.

    A URL is either Pending or Resolved, never both; once Resolved it stays
    Resolved. Resolving a URL to a second, different id raises
    ConsistencyViolation.
    """

    def __init__(self):
        self._identities: Dict[str, Identity] = {}
        # placeholder -> URL, kept after resolution to detect conflicting repeats
        self._owners: Dict[str, str] = {}
        self._latest_blank = 0
        self._lock = Lock()

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def get(self, url: str) -> str:
        """
        Return the node id for a URL, minting a placeholder on first sight.

        Args:
            url: Resource URL (e.g. "/api/v2/pokemon/1/")

        Returns:
            The store id if resolved, otherwise the URL's placeholder
        """
        with self._lock:
            identity = self._identities.get(url)
            if identity is None:
                placeholder = self._next_placeholder()
                self._identities[url] = Pending(placeholder)
                self._owners[placeholder] = url

        if identity is None:
            logger.debug(f"new blank uid for {url} is {placeholder}")
            return placeholder
        if isinstance(identity, Resolved):
            logger.debug(f"got uid for {url} from cache: {identity.uid}")
            return identity.uid
        logger.debug(f"got uid for {url} from blank cache: {identity.placeholder}")
        return identity.placeholder

    def new_anonymous(self) -> str:
        """Mint a placeholder for a sub-object without a URL."""
        with self._lock:
            return self._next_placeholder()

    def _next_placeholder(self) -> str:
        # Caller holds the lock
        self._latest_blank += 1
        return f"{PLACEHOLDER_PREFIX}{self._latest_blank}"

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def resolve(self, placeholder: str, uid: str) -> None:
        """
        Record the store id assigned to a placeholder.

        Anonymous or unknown placeholders are ignored. Repeating a resolution
        with the same id is a no-op.

        Raises:
            ConsistencyViolation: the placeholder's URL already has another id
        """
        self.resolve_all({placeholder: uid})

    def resolve_all(self, assigned: Mapping[str, str]) -> int:
        """
        Resolve every placeholder returned by one submission, all or nothing.

        All pairs are checked before any is applied, so a conflict leaves the
        cache exactly as it was.

        Args:
            assigned: placeholder ("_:<n>") -> store id

        Returns:
            Number of URLs that moved from pending to resolved

        Raises:
            ConsistencyViolation: a URL would get two different ids
        """
        with self._lock:
            updates: Dict[str, str] = {}
            for placeholder, uid in assigned.items():
                url = self._owners.get(placeholder)
                if url is None:
                    # anonymous, nothing left to do
                    continue

                current = self._identities[url]
                existing = current.uid if isinstance(current, Resolved) else updates.get(url)
                if existing is not None and existing != uid:
                    raise ConsistencyViolation(url, existing, uid)
                if isinstance(current, Pending):
                    updates[url] = uid

            for url, uid in updates.items():
                self._identities[url] = Resolved(uid)

        for url, uid in updates.items():
            logger.debug(f"new uid for {url} is {uid}")
        return len(updates)

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def lookup(self, url: str) -> Optional[Identity]:
        """Current identity of a URL without minting one."""
        with self._lock:
            return self._identities.get(url)

    def snapshot(self) -> Dict:
        """Comparable copy of the whole cache state."""
        with self._lock:
            return {
                'identities': dict(self._identities),
                'owners': dict(self._owners),
                'latest_blank': self._latest_blank,
            }

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for i in self._identities.values() if isinstance(i, Pending))

    @property
    def resolved_count(self) -> int:
        with self._lock:
            return sum(1 for i in self._identities.values() if isinstance(i, Resolved))

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._identities
