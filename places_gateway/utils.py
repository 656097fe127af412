"""Helper functions shared by the front end and the config loader."""

from __future__ import annotations

from fastapi import Request

DEFAULT_LISTEN_HOST = "0.0.0.0"


def request_key(request: Request) -> str:
    """
    Return the raw path plus query string of an incoming request.

    This is both the cache key and the suffix appended to the upstream
    origin. The raw form is used so percent-encoding reaches the upstream
    exactly as the client sent it.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    if query:
        return f"{path}?{query}"
    return path


def split_listen_addr(addr: str) -> tuple[str, int]:
    """
    Split a ``host:port`` listen address.

    An empty host binds every interface, so ":80" becomes ("0.0.0.0", 80).
    IPv6 hosts may be bracketed: "[::1]:8080".

    Raises:
        ValueError: if the port is missing or not a number
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    host = host.strip("[]") or DEFAULT_LISTEN_HOST
    return host, int(port)
