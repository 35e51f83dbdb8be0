"""Shared utilities: logging and environment helpers."""
