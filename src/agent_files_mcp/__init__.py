"""Guarded file access for LLM agents through symbolic path expressions."""

__version__ = "0.1.0"
