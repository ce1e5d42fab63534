"""Concrete repository implementations per provider."""
