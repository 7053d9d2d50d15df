"""Shared utilities: logging, HTTP client and rendering driver."""
