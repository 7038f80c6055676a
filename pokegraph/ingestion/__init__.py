# -*- coding: utf-8 -*-
"""
Document ingestion package.

Contains the document sources the batch loader reads from: a PokeAPI
api-data directory tree on disk and the live PokeAPI REST API.
"""
