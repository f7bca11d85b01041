"""Shared helpers used across gruv packages."""
