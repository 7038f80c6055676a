# -*- coding: utf-8 -*-
"""
pokegraph source code package.

Loads trees of JSON documents (PokeAPI resources that reference each other
by URL) into a Neo4j graph: document sources, identity resolution,
preprocessing, mutation submission and the batch load CLI.
"""

__version__ = "0.1.0"
