# -*- coding: utf-8 -*-
"""
Document preprocessing: node identity assignment before submission.

Walks a parsed JSON document in place. Every object gets a "uid": objects
carrying a "url" take the id the IdentityCache holds for that URL (store id
or shared placeholder), objects without one get a fresh anonymous
placeholder. Excluded fields are dropped on the way down; scalars are left
alone; values outside the JSON types go through the configured
UnknownValuePolicy.

Example:
    cache = IdentityCache()
    preprocessor = DocumentPreprocessor(cache)

    data = {"name": "bulbasaur", "types": [{"slot": 1, "type": {"url": "/api/v2/type/12/"}}]}
    preprocessor.prepare_root(data, url="/api/v2/pokemon/1/", typename="pokemon")
    preprocessor.preprocess(data, "pokemon/1")
    # data["uid"] == "_:1", data["types"][0]["uid"] == "_:2",
    # data["types"][0]["type"]["uid"] == "_:3"
"""

# Standard library
from typing import Any, Dict, Iterable, Optional, Union

# Local
from pokegraph.graph.identity_cache import IdentityCache
from pokegraph.utils.dataclasses import UnknownValuePolicy
from pokegraph.utils.errors import UnsupportedValueError
from pokegraph.utils.logger import get_logger

logger = get_logger(__name__)

NODE_ID_FIELD = "uid"
URL_FIELD = "url"
TYPENAME_FIELD = "typename"

DEFAULT_EXCLUDED_FIELDS = frozenset({"names"})

SCALAR_TYPES = (str, int, float, bool, type(None))


def document_url(location: str, url_prefix: str = "/api/v2") -> str:
    """
    Synthetic URL for a top-level document from its source location.

    Top-level documents carry no URL of their own; nested references to
    them look like "/api/v2/pokemon/1/", so the root gets the same shape.

    Example:
        >>> document_url("pokemon/1")
        "/api/v2/pokemon/1/"
    """
    return f"{url_prefix.rstrip('/')}/{location.strip('/')}/"


class DocumentPreprocessor:
    """
    Recursive identity assignment over a document tree.

    Stateless apart from the shared IdentityCache, so one instance can be
    used from several worker threads.
    """

    def __init__(
        self,
        cache: IdentityCache,
        excluded_fields: Optional[Iterable[str]] = None,
        unknown_value_policy: Union[UnknownValuePolicy, str] = UnknownValuePolicy.WARN,
    ):
        """
        Args:
            cache: Identity cache shared by every document of the run
            excluded_fields: Field names dropped from every object
                (default: {"names"})
            unknown_value_policy: WARN to log and keep non-JSON values,
                FAIL to raise UnsupportedValueError
        """
        self.cache = cache
        self.excluded_fields = frozenset(
            DEFAULT_EXCLUDED_FIELDS if excluded_fields is None else excluded_fields
        )
        self.unknown_value_policy = UnknownValuePolicy(unknown_value_policy)

    def prepare_root(self, data: Dict[str, Any], url: str, typename: str) -> Dict[str, Any]:
        """Give a top-level document its synthetic URL and type before preprocessing."""
        data[URL_FIELD] = url
        data[TYPENAME_FIELD] = typename
        return data

    def preprocess(self, data: Any, context: str = "") -> None:
        """
        Assign node ids throughout a document tree, in place.

        Args:
            data: Parsed JSON value (dict, list or scalar)
            context: Path of this value, used in log messages only

        Raises:
            UnsupportedValueError: non-JSON value under the FAIL policy
        """
        if isinstance(data, dict):
            self._preprocess_object(data, context)
        elif isinstance(data, list):
            for i, value in enumerate(data):
                self.preprocess(value, f"{context}[{i}]")
        elif isinstance(data, SCALAR_TYPES):
            pass
        elif self.unknown_value_policy is UnknownValuePolicy.FAIL:
            raise UnsupportedValueError(context, data)
        else:
            logger.warning(f"unknown type {type(data).__name__} at {context}, leaving as is")

    def _preprocess_object(self, node: Dict[str, Any], context: str) -> None:
        for field in self.excluded_fields:
            node.pop(field, None)

        url = node.get(URL_FIELD)
        if isinstance(url, str) and url:
            node[NODE_ID_FIELD] = self.cache.get(url)
        elif url == "":
            logger.warning(f"ignoring empty url at {context}")
        elif url is not None:
            logger.warning(f"ignoring non-string url {url!r} at {context}")

        if NODE_ID_FIELD not in node:
            node[NODE_ID_FIELD] = self.cache.new_anonymous()

        for key, value in list(node.items()):
            if key == NODE_ID_FIELD:
                continue
            self.preprocess(value, f"{context}/{key}")
