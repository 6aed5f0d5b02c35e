"""Responders for tools that wrap a single backend call or pure formatting."""
