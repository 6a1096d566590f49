"""Core business logic: the scoring engine, weighted selection, errors and models.

This module is transport-agnostic. Both the HTTP API and the MCP server
import from here.
"""
