# -*- coding: utf-8 -*-
"""
Error types raised by the loader.

Per-document errors (RetrievalError, SubmissionError, UnsupportedValueError)
are collected by the batch processor and reported with the failing location.
ConsistencyViolation is fatal for the run: the store assigned two different
node ids to one URL, and continuing would duplicate nodes.

Example:
    from pokegraph.utils.errors import ConsistencyViolation, LoaderError

    try:
        processor.load_batch()
    except ConsistencyViolation as e:
        logger.critical(f"Aborting: {e}")
"""

from typing import Any, Optional


class LoaderError(Exception):
    """Base class for all loader errors."""


class RetrievalError(LoaderError):
    """A document could not be listed, fetched or parsed."""

    def __init__(self, location: str, message: str):
        self.location = location
        super().__init__(f"{location}: {message}")


class SubmissionError(LoaderError):
    """The store rejected a mutation or could not be reached.

    Safe to retry: no placeholder is resolved when a submission fails.
    """

    def __init__(self, url: Optional[str], message: str):
        self.url = url
        super().__init__(f"{url or '<anonymous>'}: {message}")


class UnsupportedValueError(LoaderError):
    """A document holds a value that is not a JSON type (strict policy only)."""

    def __init__(self, context: str, value: Any):
        self.context = context
        self.value = value
        super().__init__(f"unsupported value of type {type(value).__name__} at {context}")


class ConsistencyViolation(LoaderError):
    """A URL already resolved to one node id was resolved to another."""

    def __init__(self, url: str, existing: str, new: str):
        self.url = url
        self.existing = existing
        self.new = new
        super().__init__(f"uid already assigned for {url}: was {existing} got {new}")
