# -*- coding: utf-8 -*-
"""
Utilities package for the pokegraph loader.

Contains logging setup, configuration, error types, shared dataclasses and
JSON helpers used by the graph and ingestion packages.
"""
