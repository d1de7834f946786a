"""Credential issuance, password lifecycle and user management."""
