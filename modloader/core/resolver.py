"""Module resolver — turns a module identifier into a concrete image reference.

Module repositories publish a template (not valid JSON, it still holds
placeholders) whose ``"Image": "<ref>"`` field names the image to run.  The
resolver fetches it from the raw-content host and extracts that field with a
tolerant text match rather than a parser.
"""

from __future__ import annotations

import logging
import re

import httpx

from modloader.core.errors import FetchError, NoImageFoundError
from modloader.models.modules import ImageReference, ModuleRecord

logger = logging.getLogger(__name__)

_IMAGE_FIELD = re.compile(r'"Image":\s*"([^"]+)"')

_SOURCE_HOST = "github.com"
_RAW_HOST = "raw.githubusercontent.com"


def extract_image_field(text: str) -> str | None:
    """Return the first ``"Image": "<value>"`` value in *text*, if any."""
    match = _IMAGE_FIELD.search(text)
    return match.group(1) if match else None


def is_module_url(module_id: str) -> bool:
    return module_id.startswith(("http://", "https://"))


def template_url_for(
    module_id: str,
    template_filename: str = "lilypad_module.json.tmpl",
    branch: str = "main",
) -> str:
    """Derive the raw template URL of a module repository URL.

    ``https://github.com/org/repo`` becomes
    ``https://raw.githubusercontent.com/org/repo/main/lilypad_module.json.tmpl``.
    """
    return module_id.replace(_SOURCE_HOST, _RAW_HOST, 1) + f"/{branch}/{template_filename}"


class ModuleResolver:
    """Resolves module identifiers to image references.

    Parameters
    ----------
    client:
        HTTP client used for template fetches.  Its timeout applies per call.
    template_filename:
        Template file name at the repository root.
    branch:
        Branch the template is read from.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        template_filename: str = "lilypad_module.json.tmpl",
        branch: str = "main",
    ) -> None:
        self._client = client
        self._template_filename = template_filename
        self._branch = branch

    def template_url(self, module_id: str) -> str:
        return template_url_for(module_id, self._template_filename, self._branch)

    def resolve(self, module_id: str) -> ImageReference:
        """Resolve *module_id* to an image reference.

        Identifiers that are not ``http``/``https`` URLs are already image
        references and are returned unchanged.

        Raises
        ------
        FetchError
            The template could not be fetched.
        NoImageFoundError
            The template has no matching ``Image`` field.
        """
        if not is_module_url(module_id):
            return module_id

        url = self.template_url(module_id)
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                url,
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc
        except httpx.InvalidURL as exc:
            raise FetchError(url, f"invalid URL: {exc}") from exc

        body = response.text
        image = extract_image_field(body)
        if image is None:
            logger.warning("No image found in response for %s: %s", module_id, body)
            raise NoImageFoundError(module_id, body)

        logger.debug("Resolved %s -> %s", module_id, image)
        return image

    def resolve_record(self, record: ModuleRecord) -> ModuleRecord:
        """Return *record* with its ``image`` assigned by resolution."""
        return record.with_image(self.resolve(record.module_id))
