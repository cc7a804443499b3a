"""Pydantic output schemas returned by tools."""
