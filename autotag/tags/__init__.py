"""Vault-level tag operations and HTTP routes."""
