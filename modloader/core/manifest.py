"""Allow-list manifest loader."""

from __future__ import annotations

import json
import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from modloader.core.errors import DecodeError, FetchError
from modloader.models.modules import ModuleRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[ModuleRecord])


def decode_manifest(body: str | bytes) -> list[ModuleRecord]:
    """Decode a manifest body into module records.

    Raises ``DecodeError`` unless the body is a JSON array of objects that
    each carry a string ``ModuleId``.
    """
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"Error unmarshalling manifest JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise DecodeError(
            f"Manifest must be a JSON array, got {type(payload).__name__}"
        )
    try:
        return _RECORDS.validate_python(payload)
    except ValidationError as exc:
        raise DecodeError(f"Invalid manifest record: {exc}") from exc


class ManifestLoader:
    """Fetches and decodes the allow-list from a fixed URL. No retry.

    Parameters
    ----------
    url:
        Location of the manifest.
    client:
        HTTP client used for the single GET.
    """

    def __init__(self, url: str, client: httpx.Client) -> None:
        self.url = url
        self._client = client

    def load(self) -> list[ModuleRecord]:
        try:
            response = self._client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                self.url,
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(self.url, str(exc) or type(exc).__name__) from exc
        except httpx.InvalidURL as exc:
            raise FetchError(self.url, f"invalid URL: {exc}") from exc

        records = decode_manifest(response.content)
        logger.info("Loaded %d modules from %s", len(records), self.url)
        return records
