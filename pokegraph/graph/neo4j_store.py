# -*- coding: utf-8 -*-
"""
Neo4j graph store for pokegraph documents.

Applies one preprocessed document tree as one write transaction using the
batched UNWIND pattern. The tree is flattened into node rows and edge rows:

- every JSON object is a (:Resource) node whose scalar fields (and lists of
  scalars) become properties
- an object nested under field "abilities" at list index 2 becomes
  (parent)-[:RELATION {predicate: "abilities", position: 2}]->(child)

Node ids in the payload are either placeholders ("_:<n>") or element ids the
store returned earlier. URL placeholders are MERGEd on url, so the same URL
always lands on one node even when two documents race; anonymous
placeholders are CREATEd. The response maps every placeholder label (without
the "_:" prefix) to the element id it ended up on.

Author: pokegraph contributors
Created: 2026-10-12
Modified: 2026-10-19

Example:
    with Neo4jStore(uri, user, password) as store:
        store.create_constraints_and_indexes()
        result = store.mutate(encode_payload(document))
        result.uids  # {"1": "4:6c1d...:0", "2": "4:6c1d...:1"}

References:
    MutationSubmitter: sends payloads and resolves the returned ids
    Neo4j element ids: https://neo4j.com/docs/cypher-manual/current/functions/scalar/#functions-elementid
"""

# Standard library
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Third-party
from neo4j import GraphDatabase, ManagedTransaction

# Local
from pokegraph.graph.identity_cache import PLACEHOLDER_PREFIX, is_placeholder
from pokegraph.graph.preprocessor import NODE_ID_FIELD, URL_FIELD
from pokegraph.utils.dataclasses import MutationResult
from pokegraph.utils.io import decode_payload
from pokegraph.utils.logger import get_logger

logger = get_logger(__name__)

NODE_LABEL = "Resource"
EDGE_TYPE = "RELATION"

# =========================================================================
# CYPHER
# =========================================================================

MERGE_URL_NODES = f"""
UNWIND $batch AS row
MERGE (n:{NODE_LABEL} {{url: row.url}})
SET n += row.props
RETURN row.uid AS uid, elementId(n) AS id
"""

CREATE_ANONYMOUS_NODES = f"""
UNWIND $batch AS row
CREATE (n:{NODE_LABEL})
SET n += row.props
RETURN row.uid AS uid, elementId(n) AS id
"""

UPDATE_KNOWN_NODES = f"""
UNWIND $batch AS row
MATCH (n:{NODE_LABEL})
WHERE elementId(n) = row.uid
SET n += row.props
RETURN row.uid AS uid, elementId(n) AS id
"""

MERGE_EDGES = f"""
UNWIND $batch AS rel
MATCH (s:{NODE_LABEL}) WHERE elementId(s) = rel.source
MATCH (t:{NODE_LABEL}) WHERE elementId(t) = rel.target
MERGE (s)-[r:{EDGE_TYPE} {{predicate: rel.predicate, position: rel.position}}]->(t)
"""


# =========================================================================
# FLATTENING
# =========================================================================

@dataclass
class FlatDocument:
    """Node and edge rows of one document tree."""
    url_nodes: List[Dict] = field(default_factory=list)
    anonymous_nodes: List[Dict] = field(default_factory=list)
    known_nodes: List[Dict] = field(default_factory=list)
    edges: List[Dict] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.url_nodes) + len(self.anonymous_nodes) + len(self.known_nodes)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def flatten_document(tree: Dict[str, Any]) -> FlatDocument:
    """
    Flatten a preprocessed document tree into node and edge rows.

    A node that appears several times (the same URL referenced twice)
    produces one row; its properties are merged.

    Raises:
        ValueError: an object without a node id (tree was not preprocessed)
    """
    nodes: Dict[str, Dict] = {}
    edges: List[Dict] = []
    _flatten_object(tree, nodes, edges)

    flat = FlatDocument(edges=edges)
    for uid, row in nodes.items():
        if not is_placeholder(uid):
            flat.known_nodes.append(row)
        elif row['url'] is not None:
            flat.url_nodes.append(row)
        else:
            flat.anonymous_nodes.append(row)
    return flat


def _flatten_object(obj: Dict[str, Any], nodes: Dict[str, Dict], edges: List[Dict]) -> str:
    uid = obj.get(NODE_ID_FIELD)
    if not isinstance(uid, str):
        raise ValueError(f"object without {NODE_ID_FIELD}: keys={sorted(obj)}")

    url = obj.get(URL_FIELD) if isinstance(obj.get(URL_FIELD), str) else None
    row = nodes.setdefault(uid, {'uid': uid, 'url': url, 'props': {}})
    props = row['props']

    for key, value in obj.items():
        if key == NODE_ID_FIELD:
            continue
        if isinstance(value, dict):
            child = _flatten_object(value, nodes, edges)
            edges.append({'source': uid, 'target': child, 'predicate': key, 'position': 0})
        elif isinstance(value, list):
            scalars = _flatten_list(uid, key, value, nodes, edges)
            if scalars:
                props[key] = scalars
        elif value is None:
            continue
        else:
            props[key] = value

    return uid


def _flatten_list(uid: str, key: str, values: List[Any],
                  nodes: Dict[str, Dict], edges: List[Dict]) -> List[Any]:
    # Objects become edges; the scalars are returned as a property list
    scalars = []
    for i, value in enumerate(values):
        if isinstance(value, dict):
            child = _flatten_object(value, nodes, edges)
            edges.append({'source': uid, 'target': child, 'predicate': key, 'position': i})
        elif isinstance(value, list):
            scalars.extend(_flatten_list(uid, key, value, nodes, edges))
        elif _is_scalar(value):
            scalars.append(value)
    return scalars


# =========================================================================
# STORE
# =========================================================================

class Neo4jStore:
    """
    Neo4j implementation of the store's mutate/query interface.

    Example:
        store = Neo4jStore(uri, user, password)
        try:
            store.create_constraints_and_indexes()
            store.mutate(payload)
        finally:
            store.close()
    """

    def __init__(self, uri: str, user: str, password: str,
                 database: Optional[str] = None, batch_size: int = 500):
        """
        Initialize Neo4j connection.

        Args:
            uri: Neo4j connection URI (e.g., bolt://localhost:7687)
            user: Username (typically 'neo4j')
            password: Database password
            database: Database name (None = server default)
            batch_size: Rows per UNWIND statement
        """
        self.driver = GraphDatabase.driver(uri, auth=(user, password))
        self.database = database
        self.batch_size = batch_size
        logger.info(f"Connected to Neo4j at {uri}")

    def close(self):
        """Close Neo4j driver connection."""
        self.driver.close()
        logger.info("Neo4j connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _session(self):
        return self.driver.session(database=self.database)

    # =========================================================================
    # SCHEMA
    # =========================================================================

    def create_constraints_and_indexes(self) -> None:
        """
        Create the url uniqueness constraint and lookup indexes.

        The constraint also backs the MERGE on url used for every URL node.
        """
        logger.info("Creating constraints and indexes...")

        statements = [
            f"CREATE CONSTRAINT resource_url IF NOT EXISTS FOR (r:{NODE_LABEL}) REQUIRE r.url IS UNIQUE",
            f"CREATE INDEX resource_name IF NOT EXISTS FOR (r:{NODE_LABEL}) ON (r.name)",
            f"CREATE INDEX resource_typename IF NOT EXISTS FOR (r:{NODE_LABEL}) ON (r.typename)",
        ]

        with self._session() as session:
            for statement in statements:
                session.run(statement).consume()
                logger.debug(f"Created: {statement[:60]}...")

        logger.info(f"Created {len(statements)} constraints and indexes")

    def clear_database(self) -> int:
        """
        Delete all nodes and relationships.

        Returns:
            Number of nodes deleted
        """
        logger.warning("Clearing entire database...")
        with self._session() as session:
            record = session.run("MATCH (n) DETACH DELETE n RETURN count(n) AS count").single()
        count = record['count'] if record else 0
        logger.info(f"Deleted {count} nodes and all relationships")
        return count

    # =========================================================================
    # MUTATION
    # =========================================================================

    def mutate(self, payload: bytes) -> MutationResult:
        """
        Apply one serialized document tree in a single committed transaction.

        Args:
            payload: UTF-8 JSON of a preprocessed document

        Returns:
            MutationResult with every placeholder label mapped to its element id

        Raises:
            neo4j.exceptions.Neo4jError / DriverError: the transaction failed
                and nothing was committed
            ValueError: a permanent node id in the payload matched no node;
                the transaction is rolled back
        """
        flat = flatten_document(decode_payload(payload))
        logger.debug(f"sending mutation: {flat.node_count} nodes, {len(flat.edges)} edges")

        with self._session() as session:
            assigned = session.execute_write(self._write_document, flat)

        uids = {
            placeholder[len(PLACEHOLDER_PREFIX):]: element_id
            for placeholder, element_id in assigned.items()
            if is_placeholder(placeholder)
        }
        return MutationResult(uids=uids, committed=True)

    def _write_document(self, tx: ManagedTransaction, flat: FlatDocument) -> Dict[str, str]:
        # Runs inside the managed transaction; may be retried by the driver
        assigned: Dict[str, str] = {}
        for query, rows in (
            (MERGE_URL_NODES, flat.url_nodes),
            (CREATE_ANONYMOUS_NODES, flat.anonymous_nodes),
            (UPDATE_KNOWN_NODES, flat.known_nodes),
        ):
            for batch in self._batches(rows):
                for uid, element_id in self._run_returning(tx, query, batch):
                    assigned[uid] = element_id

        # A node id the store no longer knows aborts the whole document
        edges = []
        for edge in flat.edges:
            for end in (edge['source'], edge['target']):
                if end not in assigned:
                    raise ValueError(f"unknown node {end} in {edge['predicate']} edge")
            edges.append({**edge, 'source': assigned[edge['source']], 'target': assigned[edge['target']]})

        for batch in self._batches(edges):
            tx.run(MERGE_EDGES, batch=batch).consume()

        return assigned

    def _batches(self, rows: List[Dict]):
        for i in range(0, len(rows), self.batch_size):
            yield rows[i:i + self.batch_size]

    @staticmethod
    def _run_returning(tx: ManagedTransaction, query: str,
                       batch: List[Dict]) -> List[Tuple[str, str]]:
        return [(record['uid'], record['id']) for record in tx.run(query, batch=batch)]

    # =========================================================================
    # QUERY
    # =========================================================================

    def query(self, cypher: str, params: Optional[Dict] = None) -> List[Dict]:
        """Run a read-only query and return the records as dicts."""
        with self._session() as session:
            return session.execute_read(
                lambda tx: [record.data() for record in tx.run(cypher, params or {})]
            )

    def count_by_type(self) -> Dict[str, int]:
        """Number of loaded top-level documents per typename."""
        records = self.query(
            f"MATCH (n:{NODE_LABEL}) WHERE n.typename IS NOT NULL "
            "RETURN n.typename AS typename, count(n) AS count ORDER BY typename"
        )
        return {r['typename']: r['count'] for r in records}
