# -*- coding: utf-8 -*-
"""
Core data structures for the pokegraph loader

Single source of truth for the values passed between document sources, the
preprocessor, the submitter, the store and the batch processor. Import from
this module rather than redefining shapes locally.

Examples:
    from pokegraph.utils.dataclasses import LoadResult, MutationResult

    result = MutationResult(uids={"1": "4:9f0c...:12"}, committed=True)
    summary = LoadResult()
    summary.record_success("pokemon")

"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


# ============================================================================
# ENUMS
# ============================================================================

class DocumentState(Enum):
    """Lifecycle of one document through the loader."""
    PARSED = "parsed"
    PREPROCESSED = "preprocessed"
    SUBMITTED = "submitted"
    COMMITTED = "committed"
    FAILED = "failed"


class UnknownValuePolicy(Enum):
    """What the preprocessor does with a value that is not a JSON type."""
    WARN = "warn"    # Log and leave the value untouched
    FAIL = "fail"    # Raise UnsupportedValueError, failing the document


# ============================================================================
# SOURCES
# ============================================================================

@dataclass(frozen=True)
class ChildEntry:
    """One entry returned when listing a location in a document source."""
    name: str
    is_container: bool


# ============================================================================
# STORE
# ============================================================================

@dataclass
class MutationResult:
    """
    Store response to one mutation.

    uids maps placeholder labels (without the "_:" prefix) to the permanent
    node ids the store assigned or matched.
    """
    uids: Dict[str, str] = field(default_factory=dict)
    committed: bool = True


# ============================================================================
# BATCH RESULTS
# ============================================================================

@dataclass
class DocumentError:
    """A per-document failure, reported with the failing location."""
    location: str
    typename: str
    error: Exception

    def __str__(self) -> str:
        return f"[{self.typename}] {self.location}: {self.error}"


@dataclass
class TypeSummary:
    """Loaded/failed counts for one entity type."""
    typename: str
    loaded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.loaded + self.failed


@dataclass
class LoadResult:
    """Outcome of one LoadBatch run."""
    loaded: int = 0
    failed: int = 0
    errors: List[DocumentError] = field(default_factory=list)
    types: Dict[str, TypeSummary] = field(default_factory=dict)

    def summary_for(self, typename: str) -> TypeSummary:
        if typename not in self.types:
            self.types[typename] = TypeSummary(typename=typename)
        return self.types[typename]

    def record_success(self, typename: str) -> None:
        self.loaded += 1
        self.summary_for(typename).loaded += 1

    def record_failure(self, typename: str, location: str, error: Exception) -> None:
        self.failed += 1
        self.summary_for(typename).failed += 1
        self.errors.append(DocumentError(location=location, typename=typename, error=error))

    def to_dict(self) -> Dict:
        """JSON-friendly view for the --report file."""
        return {
            'loaded': self.loaded,
            'failed': self.failed,
            'types': {
                name: {'loaded': s.loaded, 'failed': s.failed}
                for name, s in sorted(self.types.items())
            },
            'errors': [
                {'typename': e.typename, 'location': e.location, 'error': str(e.error)}
                for e in self.errors
            ],
        }
