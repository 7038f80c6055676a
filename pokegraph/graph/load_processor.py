# -*- coding: utf-8 -*-
"""
Batch load orchestrator: document source -> identity resolution -> Neo4j.

Walks a document source (entity types at the first level, one document per
entry below each type), and for every document runs fetch -> preprocess ->
submit on a thread pool. All workers share one IdentityCache, so documents
that reference the same URL converge on one node whether that URL was loaded
earlier, later, or at the same time.

Per-document failures (fetch/parse errors, rejected mutations) are collected
with their location and the run continues. A ConsistencyViolation, where the
store assigned a second node id to a URL, stops the whole run.

Author: pokegraph contributors
Created: 2026-10-12
Modified: 2026-10-19

Examples:
    # Load an api-data checkout from the command line
    # pokegraph-load --data-dir data/api-data/data/api/v2 --workers 8

    # Load straight from the REST API, with identity traces
    # pokegraph-load --source http --debug --log-file logs/load.log

    # Python API usage
    from pokegraph.graph.load_processor import BatchLoadProcessor
    from pokegraph.graph.neo4j_store import Neo4jStore
    from pokegraph.ingestion.sources import DirectorySource

    with Neo4jStore(uri, user, password) as store:
        processor = BatchLoadProcessor(DirectorySource(data_dir), store, num_workers=8)
        result = processor.load_batch()
        print(result.loaded, result.failed)

References:
    IdentityCache: URL -> node id with placeholder resolution
    DocumentPreprocessor: identity assignment and field filtering
    MutationSubmitter: one commit-now mutation per document
"""
# Standard library
import argparse
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, List, Optional, Union

# Third-party
from tqdm import tqdm

# Local
from pokegraph.graph.identity_cache import IdentityCache
from pokegraph.graph.neo4j_store import Neo4jStore
from pokegraph.graph.preprocessor import DocumentPreprocessor
from pokegraph.graph.submitter import GraphStore, MutationSubmitter
from pokegraph.ingestion.sources import DirectorySource, DocumentSource, HttpSource, join_location
from pokegraph.utils.config import (
    DATA_PATH,
    DEBUG_MODE,
    HTTP_CONFIG,
    LOADER_CONFIG,
    NEO4J_DATABASE,
    NEO4J_PASSWORD,
    NEO4J_URI,
    NEO4J_USER,
)
from pokegraph.utils.dataclasses import DocumentState, LoadResult, UnknownValuePolicy
from pokegraph.utils.errors import (
    ConsistencyViolation,
    RetrievalError,
    SubmissionError,
    UnsupportedValueError,
)
from pokegraph.utils.io import save_json
from pokegraph.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

# Errors that fail one document but not its siblings
DOCUMENT_ERRORS = (RetrievalError, SubmissionError, UnsupportedValueError)


class BatchLoadProcessor:
    """
    LoadBatch entry point.

    Handles:
    - Enumerating entity types and their documents from the source
    - Parallel fetch/preprocess/submit with a shared IdentityCache
    - Collecting per-document errors and per-type counts
    - Aborting the run on ConsistencyViolation
    """

    def __init__(
        self,
        source: DocumentSource,
        store: GraphStore,
        cache: Optional[IdentityCache] = None,
        num_workers: int = LOADER_CONFIG["num_workers"],
        excluded_fields: Optional[Iterable[str]] = None,
        unknown_value_policy: Union[UnknownValuePolicy, str] = LOADER_CONFIG["unknown_value_policy"],
        show_progress: bool = True,
    ):
        """
        Initialize the processor.

        Args:
            source: Where documents are listed and fetched from
            store: Graph store receiving one mutation per document
            cache: Identity cache for this run (a fresh one if None)
            num_workers: Documents loaded concurrently
            excluded_fields: Fields dropped during preprocessing
                (default from LOADER_CONFIG)
            unknown_value_policy: "warn" or "fail" for non-JSON values
            show_progress: Show a tqdm bar per entity type
        """
        self.source = source
        self.cache = cache if cache is not None else IdentityCache()
        self.num_workers = max(1, num_workers)
        self.show_progress = show_progress

        if excluded_fields is None:
            excluded_fields = LOADER_CONFIG["excluded_fields"]
        self.preprocessor = DocumentPreprocessor(
            self.cache,
            excluded_fields=excluded_fields,
            unknown_value_policy=unknown_value_policy,
        )
        self.submitter = MutationSubmitter(store, self.cache)

    # =========================================================================
    # RUN
    # =========================================================================

    def load_batch(self, root_location: str = "") -> LoadResult:
        """
        Load every document under a root location.

        Args:
            root_location: Location whose container children are entity types

        Returns:
            LoadResult with loaded/failed counts, errors and per-type summaries

        Raises:
            RetrievalError: the root itself could not be listed
            ConsistencyViolation: a URL resolved to two node ids; run aborted
        """
        result = LoadResult()

        for entry in self.source.list_children(root_location):
            if not entry.is_container:
                continue
            self.load_type(entry.name, join_location(root_location, entry.name), result)

        self.log_summary(result)
        return result

    def load_type(self, typename: str, location: str, result: LoadResult) -> None:
        """Load every document of one entity type into result."""
        try:
            entries = self.source.list_children(location)
        except RetrievalError as e:
            logger.error(f"could not load type {typename}: {e}")
            result.record_failure(typename, location, e)
            return

        locations = [join_location(location, e.name) for e in entries if e.is_container]
        summary = result.summary_for(typename)
        logger.info(f"loading {typename} (~{len(locations)} items)")

        with tqdm(total=len(locations), desc=typename, unit="doc",
                  disable=not self.show_progress) as pbar:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = {
                    executor.submit(self.load_document, typename, doc_location): doc_location
                    for doc_location in locations
                }

                for future in as_completed(futures):
                    doc_location = futures[future]
                    try:
                        future.result()
                        result.record_success(typename)
                    except ConsistencyViolation:
                        executor.shutdown(wait=False, cancel_futures=True)
                        raise
                    except DOCUMENT_ERRORS as e:
                        self._trace(doc_location, DocumentState.FAILED)
                        logger.error(f"could not load {doc_location}: {e}")
                        result.record_failure(typename, doc_location, e)
                    finally:
                        pbar.update(1)

        logger.info(f"{typename}: loaded {summary.loaded}, failed {summary.failed}")

    def load_document(self, typename: str, location: str) -> DocumentState:
        """
        Fetch, preprocess and submit one document.

        Returns:
            DocumentState.COMMITTED

        Raises:
            RetrievalError, UnsupportedValueError, SubmissionError: this
                document failed; its placeholders stay pending
            ConsistencyViolation: fatal for the run
        """
        data = self.source.fetch_document(location)
        self._trace(location, DocumentState.PARSED)

        url = self.source.document_url(location)
        self.preprocessor.prepare_root(data, url=url, typename=typename)
        self.preprocessor.preprocess(data, location)
        self._trace(location, DocumentState.PREPROCESSED, data['uid'])

        self._trace(location, DocumentState.SUBMITTED)
        self.submitter.submit(data)
        self._trace(location, DocumentState.COMMITTED)
        return DocumentState.COMMITTED

    @staticmethod
    def _trace(location: str, state: DocumentState, detail: str = "") -> None:
        logger.debug(f"{location}: {state.value} {detail}".rstrip())

    def log_summary(self, result: LoadResult) -> None:
        """Log loaded/failed counts per type and every error."""
        logger.info("\n=== LOAD SUMMARY ===")
        for typename, summary in sorted(result.types.items()):
            status = "✓" if summary.failed == 0 else "✗"
            logger.info(f"{status} {typename}: {summary.loaded:,} loaded, {summary.failed:,} failed")
        for error in result.errors:
            logger.warning(f"  {error}")
        logger.info(f"Total: {result.loaded:,} loaded, {result.failed:,} failed, "
                    f"{self.cache.resolved_count:,} urls resolved, "
                    f"{self.cache.pending_count:,} still pending")


def build_source(args: argparse.Namespace) -> DocumentSource:
    """Document source selected on the command line."""
    if args.source == "http":
        return HttpSource(base_url=args.base_url)
    return DirectorySource(args.data_dir)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for pokegraph-load."""
    parser = argparse.ArgumentParser(
        description='Load PokeAPI documents into Neo4j with URL identity resolution'
    )
    parser.add_argument(
        '--source',
        choices=['dir', 'http'],
        default='dir',
        help='Read documents from an api-data directory or the REST API (default: dir)'
    )
    parser.add_argument(
        '--data-dir',
        type=Path,
        default=DATA_PATH,
        help='api-data directory at the /api/v2 level (default: DATA_PATH env var)'
    )
    parser.add_argument(
        '--base-url',
        default=HTTP_CONFIG["base_url"],
        help='REST API base URL for --source http'
    )
    parser.add_argument(
        '--uri',
        default=NEO4J_URI,
        help='Neo4j URI (default: NEO4J_URI env var)'
    )
    parser.add_argument(
        '--user',
        default=NEO4J_USER,
        help='Neo4j username (default: NEO4J_USER env var or "neo4j")'
    )
    parser.add_argument(
        '--password',
        default=NEO4J_PASSWORD,
        help='Neo4j password (default: NEO4J_PASSWORD env var)'
    )
    parser.add_argument(
        '--database',
        default=NEO4J_DATABASE,
        help='Neo4j database (default: NEO4J_DATABASE env var or server default)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=LOADER_CONFIG["num_workers"],
        help='Documents loaded concurrently'
    )
    parser.add_argument(
        '--exclude-field',
        action='append',
        dest='excluded_fields',
        help='Field dropped from every object (repeatable, default: names)'
    )
    parser.add_argument(
        '--strict-values',
        action='store_true',
        help='Fail a document on non-JSON values instead of logging a warning'
    )
    parser.add_argument(
        '--clear',
        action='store_true',
        help='Clear database before loading (requires confirmation)'
    )
    parser.add_argument(
        '--skip-schema',
        action='store_true',
        help='Do not create constraints and indexes'
    )
    parser.add_argument(
        '--report',
        type=Path,
        help='Write a JSON summary of the run to this file'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        default=DEBUG_MODE,
        help='Log identity cache decisions and mutations'
    )

    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, log_file=args.log_file, force=True)

    if not args.uri or not args.password:
        parser.error("--uri and --password required (or set NEO4J_URI and NEO4J_PASSWORD env vars)")

    if args.clear:
        response = input("⚠️  This will DELETE all data in the Neo4j database. Continue? (yes/no): ")
        if response.lower() != 'yes':
            logger.info("Load cancelled")
            return 0

    with Neo4jStore(args.uri, args.user, args.password, database=args.database) as store:
        if args.clear:
            store.clear_database()
        if not args.skip_schema:
            store.create_constraints_and_indexes()

        processor = BatchLoadProcessor(
            source=build_source(args),
            store=store,
            num_workers=args.workers,
            excluded_fields=args.excluded_fields,
            unknown_value_policy=UnknownValuePolicy.FAIL if args.strict_values else UnknownValuePolicy.WARN,
        )

        try:
            result = processor.load_batch()
        except ConsistencyViolation as e:
            logger.critical(f"Aborting load: {e}")
            return 2
        except RetrievalError as e:
            logger.error(f"Could not list documents: {e}")
            return 1

        for typename, count in store.count_by_type().items():
            logger.info(f"  {typename}: {count:,} nodes in graph")

    if args.report:
        save_json(result.to_dict(), args.report)

    return 1 if result.failed else 0


if __name__ == '__main__':
    sys.exit(main())
