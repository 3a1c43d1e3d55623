"""Infrastructure layer: transport clients shared by handlers and authorizations."""

from cascade.infrastructure.http import HttpClient

__all__ = ["HttpClient"]
