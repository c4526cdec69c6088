"""Credential hashing and session tokens."""
