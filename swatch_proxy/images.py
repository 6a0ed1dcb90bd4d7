"""Resolve swatch ``main_image`` media references to image URLs.

Two resolvers share one interface. ``LookupImageResolver`` asks the Admin API
for each ``MediaImage`` GID separately. ``InlineReferenceImageResolver`` reads
the URL out of the ``reference`` that the page query already inlined, and
makes no extra request. A deployment picks one of them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from swatch_proxy.schemas import SwatchField
from swatch_proxy.shopify_api import ShopifyApiClient, ShopifyApiError, is_media_image_gid

logger = logging.getLogger(__name__)


class ImageResolver(Protocol):
    requests_inline_reference: bool

    async def resolve_many(self, fields: list[SwatchField]) -> list[str | None]:
        ...


def extract_reference_url(reference: Any) -> str | None:
    if not isinstance(reference, dict):
        return None
    image = reference.get("image")
    if not isinstance(image, dict):
        return None
    url = image.get("url")
    if not isinstance(url, str) or not url:
        return None
    return url


class InlineReferenceImageResolver:
    requests_inline_reference = True

    async def resolve_many(self, fields: list[SwatchField]) -> list[str | None]:
        return [extract_reference_url(field.reference) for field in fields]


class LookupImageResolver:
    requests_inline_reference = False

    def __init__(self, *, client: ShopifyApiClient, concurrency: int = 8) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._client = client
        self._concurrency = concurrency

    async def resolve_many(self, fields: list[SwatchField]) -> list[str | None]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def resolve_one(field: SwatchField) -> str | None:
            async with semaphore:
                return await self._lookup(field.value or "")

        return list(await asyncio.gather(*(resolve_one(field) for field in fields)))

    async def _lookup(self, media_image_gid: str) -> str | None:
        try:
            url = await self._client.lookup_media_image_url(media_image_gid=media_image_gid)
        except ShopifyApiError as exc:
            logger.warning(
                "swatches.image_lookup_failed",
                extra={"media_image_gid": media_image_gid, "error": str(exc)},
            )
            return None
        if url is None:
            logger.warning("swatches.image_lookup_empty", extra={"media_image_gid": media_image_gid})
        return url


def needs_resolution(field: SwatchField | None) -> bool:
    return field is not None and is_media_image_gid(field.value)
