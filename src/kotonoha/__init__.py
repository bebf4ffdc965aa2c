"""Kotonoha sisters conversation engine."""
