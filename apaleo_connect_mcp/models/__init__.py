"""Vendor payload models, canonical entities and mappers."""
