"""Catalogue read endpoints."""
