"""Thin HTTP client for the upstream places service."""

from __future__ import annotations

import logging

import aiohttp
from pydantic import ValidationError
from yarl import URL

from .config_loader import config
from .errors import DecodeError, TransportError, UpstreamStatusError
from .models import InputCollection, input_adapter


class PlacesClient:
    """Encapsulates upstream HTTP calls so the orchestrator stays focused on the race."""

    def __init__(self, base_url: str | None = None, logger: logging.Logger | None = None):
        # Plain concatenation with the request path, no slash normalization.
        self.base_url = base_url if base_url is not None else config.target_addr
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    async def fetch(self, path_and_query: str, timeout: float) -> InputCollection:
        """
        GET ``base_url + path_and_query`` and decode the list of places.

        The whole call, body included, is bounded by ``timeout`` seconds.
        Nothing is retried.

        Raises:
            TransportError: connection, DNS or timeout failure
            UpstreamStatusError: any status other than 200
            DecodeError: body is not a JSON array of objects
        """
        url = self.base_url + path_and_query

        try:
            async with aiohttp.ClientSession() as session:
                # encoded=True forwards the incoming path and query verbatim.
                async with session.get(
                    URL(url, encoded=True),
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as response:
                    if response.status != 200:
                        error_text = await response.text(errors="replace")
                        self.logger.error(
                            "Upstream returned %s for %s: %s",
                            response.status,
                            url,
                            error_text[:500],
                        )
                        raise UpstreamStatusError(response.status, response.reason or "")
                    body = await response.read()
        except TimeoutError as exc:
            self.logger.error("Upstream timeout after %.3fs for %s", timeout, url)
            raise TransportError(f"timeout after {timeout:.3f}s") from exc
        except aiohttp.ClientError as exc:
            self.logger.error("Upstream connection error for %s: %s", url, exc)
            raise TransportError(str(exc)) from exc
        except ValueError as exc:
            # yarl rejects URLs it cannot parse before any I/O happens.
            self.logger.error("Invalid upstream URL %s: %s", url, exc)
            raise TransportError(str(exc)) from exc

        try:
            items = input_adapter.validate_json(body)
        except ValidationError as exc:
            self.logger.error("Cannot decode upstream body for %s: %s", url, exc)
            raise DecodeError(str(exc)) from exc
        return items or []
