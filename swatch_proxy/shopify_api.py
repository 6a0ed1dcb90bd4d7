from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from swatch_proxy.config import Settings, ShopifyCredentials
from swatch_proxy.schemas import SwatchPage

MEDIA_IMAGE_GID_PREFIX = "gid://shopify/MediaImage/"

_INLINE_REFERENCE_SELECTION = """
                        reference {
                            ... on MediaImage {
                                image {
                                    url
                                }
                            }
                        }"""

_METAOBJECTS_PAGE_QUERY = """
query metaobjectsPage($type: String!, $first: Int!, $cursor: String) {
    metaobjects(type: $type, first: $first, after: $cursor) {
        pageInfo {
            hasNextPage
        }
        edges {
            cursor
            node {
                id
                handle
                fields {
                    key
                    value%s
                }
            }
        }
    }
}
"""

_MEDIA_IMAGE_QUERY = """
query mediaImageById($id: ID!) {
    node(id: $id) {
        ... on MediaImage {
            image {
                url
            }
        }
    }
}
"""


def build_metaobjects_page_query(*, inline_reference: bool) -> str:
    return _METAOBJECTS_PAGE_QUERY % (_INLINE_REFERENCE_SELECTION if inline_reference else "")


def is_media_image_gid(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(MEDIA_IMAGE_GID_PREFIX)


class ShopifyApiError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


class ShopifyGraphQLError(ShopifyApiError):
    def __init__(self, *, errors: Any, status_code: int = 502) -> None:
        super().__init__(message=f"Admin GraphQL errors: {errors}", status_code=status_code)
        self.errors = errors


class ShopifyApiClient:
    def __init__(
        self,
        *,
        credentials: ShopifyCredentials,
        api_version: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._api_version = api_version
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ShopifyApiClient":
        return cls(
            credentials=settings.shopify_credentials(),
            api_version=settings.SHOPIFY_ADMIN_API_VERSION,
            timeout=settings.SHOPIFY_REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    @property
    def shop_domain(self) -> str:
        return self._credentials.shop_domain

    @property
    def graphql_url(self) -> str:
        return f"https://{self._credentials.shop_domain}/admin/api/{self._api_version}/graphql.json"

    async def fetch_metaobjects_page(
        self,
        *,
        metaobject_type: str,
        first: int,
        cursor: str | None,
        inline_reference: bool = False,
    ) -> SwatchPage:
        payload = {
            "query": build_metaobjects_page_query(inline_reference=inline_reference),
            "variables": {"type": metaobject_type, "first": first, "cursor": cursor},
        }
        response = await self._admin_graphql(payload=payload)

        connection = response.get("metaobjects")
        if not isinstance(connection, dict):
            raise ShopifyApiError(message="Metaobjects response is missing the metaobjects connection.")
        if not isinstance(connection.get("pageInfo"), dict):
            raise ShopifyApiError(message="Metaobjects response is missing pageInfo.")
        if not isinstance(connection.get("pageInfo", {}).get("hasNextPage"), bool):
            raise ShopifyApiError(message="Metaobjects response has invalid pageInfo.hasNextPage.")
        if not isinstance(connection.get("edges"), list):
            raise ShopifyApiError(message="Metaobjects response is missing edges.")

        try:
            return SwatchPage.model_validate(connection)
        except ValidationError as exc:
            raise ShopifyApiError(message=f"Metaobjects response contains an invalid node: {exc}") from exc

    async def lookup_media_image_url(self, *, media_image_gid: str) -> str | None:
        payload = {"query": _MEDIA_IMAGE_QUERY, "variables": {"id": media_image_gid}}
        response = await self._admin_graphql(payload=payload)
        node = response.get("node")
        if not isinstance(node, dict):
            return None
        image = node.get("image")
        if not isinstance(image, dict):
            return None
        url = image.get("url")
        if not isinstance(url, str) or not url:
            return None
        return url

    async def _admin_graphql(self, *, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self._credentials.access_token,
        }
        response = await self._post_json(url=self.graphql_url, payload=payload, headers=headers)
        data = response.get("data")
        errors = response.get("errors")
        if errors:
            raise ShopifyGraphQLError(errors=errors)
        if not isinstance(data, dict):
            raise ShopifyApiError(message="Admin GraphQL response is missing data")
        return data

    async def _post_json(
        self,
        *,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise ShopifyApiError(message=f"Timed out calling Shopify after {self._timeout}s", status_code=504) from exc
        except httpx.RequestError as exc:
            raise ShopifyApiError(message=f"Network error while calling Shopify: {exc}") from exc

        if response.status_code >= 400:
            raise ShopifyApiError(
                message=f"Shopify API call failed ({response.status_code}): {response.text}",
                status_code=502,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ShopifyApiError(message="Shopify API returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise ShopifyApiError(message="Shopify API response must be a JSON object")
        return body
