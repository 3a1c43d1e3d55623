from cascade.infrastructure.http.client import HttpClient, as_http_client

__all__ = ["HttpClient", "as_http_client"]
