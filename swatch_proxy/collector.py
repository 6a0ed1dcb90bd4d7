from __future__ import annotations

import logging

from swatch_proxy.config import Settings
from swatch_proxy.images import ImageResolver, InlineReferenceImageResolver, LookupImageResolver, needs_resolution
from swatch_proxy.schemas import MAIN_IMAGE_KEY, SwatchField, SwatchRecord
from swatch_proxy.shopify_api import ShopifyApiClient, ShopifyApiError

logger = logging.getLogger(__name__)


def _is_absolute_url(value: str | None) -> bool:
    return isinstance(value, str) and value.startswith(("https://", "http://"))


class SwatchCollector:
    """Pages through every swatch metaobject and resolves their ``main_image`` fields.

    Pagination is strictly sequential: each request carries the cursor of the
    last edge of the page before it. Image resolution runs after all pages are
    in, so an upstream error on any page leaves no image lookups behind.
    """

    def __init__(
        self,
        *,
        client: ShopifyApiClient,
        resolver: ImageResolver,
        metaobject_type: str = "swatches",
        page_size: int = 250,
        include_main_image_url: bool = False,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._metaobject_type = metaobject_type
        self._page_size = page_size
        self._include_main_image_url = include_main_image_url

    @classmethod
    def from_settings(cls, settings: Settings, *, client: ShopifyApiClient | None = None) -> "SwatchCollector":
        client = client or ShopifyApiClient.from_settings(settings)
        resolver: ImageResolver
        if settings.SWATCHES_IMAGE_STRATEGY == "inline":
            resolver = InlineReferenceImageResolver()
        else:
            resolver = LookupImageResolver(client=client, concurrency=settings.SWATCHES_IMAGE_LOOKUP_CONCURRENCY)
        return cls(
            client=client,
            resolver=resolver,
            metaobject_type=settings.SWATCHES_METAOBJECT_TYPE,
            page_size=settings.SWATCHES_PAGE_SIZE,
            include_main_image_url=settings.SWATCHES_INCLUDE_MAIN_IMAGE_URL,
        )

    @property
    def include_main_image_url(self) -> bool:
        return self._include_main_image_url

    async def collect(self) -> list[SwatchRecord]:
        records = await self.fetch_all()
        return await self.resolve_images(records)

    async def fetch_all(self) -> list[SwatchRecord]:
        records: list[SwatchRecord] = []
        cursor: str | None = None
        pages = 0

        while True:
            page = await self._client.fetch_metaobjects_page(
                metaobject_type=self._metaobject_type,
                first=self._page_size,
                cursor=cursor,
                inline_reference=self._resolver.requests_inline_reference,
            )
            pages += 1
            records.extend(page.records)
            logger.debug(
                "swatches.page_fetched",
                extra={"page": pages, "edges": len(page.edges), "has_next_page": page.pageInfo.hasNextPage},
            )

            if not page.pageInfo.hasNextPage:
                break
            if not page.edges:
                raise ShopifyApiError(message="Metaobjects page reported hasNextPage but returned no edges.")
            next_cursor = page.last_cursor
            if not next_cursor:
                raise ShopifyApiError(message="Metaobjects page reported hasNextPage but its last edge has no cursor.")
            cursor = next_cursor

        logger.info(
            "swatches.fetched",
            extra={"shop_domain": self._client.shop_domain, "pages": pages, "records": len(records)},
        )
        return records

    async def resolve_images(self, records: list[SwatchRecord]) -> list[SwatchRecord]:
        pending: list[SwatchField] = []
        for record in records:
            field = record.find_field(MAIN_IMAGE_KEY)
            if needs_resolution(field):
                pending.append(field)

        if pending:
            urls = await self._resolver.resolve_many(pending)
            for field, url in zip(pending, urls):
                field.value = url
            logger.info(
                "swatches.images_resolved",
                extra={"requested": len(pending), "resolved": sum(1 for url in urls if url is not None)},
            )

        if self._include_main_image_url:
            for record in records:
                field = record.find_field(MAIN_IMAGE_KEY)
                value = field.value if field is not None else None
                record.main_image_url = value if _is_absolute_url(value) else None
        return records
