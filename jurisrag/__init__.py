"""Jurisdiction-routed multi-agent RAG for AI regulation questions."""

__version__ = "0.1.0"
