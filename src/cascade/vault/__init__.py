"""Vault resolver for secret references."""

from cascade.vault.client import Vault

__all__ = ["Vault"]
