"""Agentic three-scene video ad generator."""

__version__ = "0.1.0"
