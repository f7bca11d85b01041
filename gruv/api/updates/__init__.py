"""Update queue endpoints."""
