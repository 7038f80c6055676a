# -*- coding: utf-8 -*-
"""
Graph loading package.

Contains identity_cache (URL -> node id with placeholder resolution),
preprocessor (recursive identity assignment), submitter (one mutation per
document with identity feedback), neo4j_store (batched UNWIND writes into
Neo4j) and load_processor (LoadBatch orchestration and CLI).
"""
