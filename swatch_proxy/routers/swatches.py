from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import ORJSONResponse

from swatch_proxy.collector import SwatchCollector
from swatch_proxy.config import Settings
from swatch_proxy.deps import get_app_settings, get_swatch_collector
from swatch_proxy.schemas import SwatchRecord, serialize_swatches
from swatch_proxy.shopify_api import ShopifyApiError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["swatches"])

CLIENT_CLOSED_REQUEST = 499
GENERIC_FAILURE_MESSAGE = "Failed to fetch swatches or resolve images"


class SwatchCollectionTimeout(RuntimeError):
    def __init__(self, deadline_seconds: float) -> None:
        super().__init__(f"Swatch collection exceeded {deadline_seconds}s")
        self.deadline_seconds = deadline_seconds


class ClientDisconnected(RuntimeError):
    pass


async def _wait_for_disconnect(request: Request, poll_seconds: float) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(poll_seconds)


async def collect_within_request(
    request: Request,
    collector: SwatchCollector,
    *,
    deadline_seconds: float,
    poll_seconds: float,
) -> list[SwatchRecord]:
    collect_task = asyncio.ensure_future(collector.collect())
    disconnect_task = asyncio.ensure_future(_wait_for_disconnect(request, poll_seconds))
    try:
        done, _ = await asyncio.wait(
            {collect_task, disconnect_task},
            timeout=deadline_seconds,
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (collect_task, disconnect_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(collect_task, disconnect_task, return_exceptions=True)

    if collect_task in done:
        return collect_task.result()
    if disconnect_task in done:
        raise ClientDisconnected()
    raise SwatchCollectionTimeout(deadline_seconds)


@router.get("/swatches")
@router.get("/api/swatches")
async def list_swatches(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    collector: SwatchCollector = Depends(get_swatch_collector),
):
    try:
        records = await collect_within_request(
            request,
            collector,
            deadline_seconds=settings.SWATCHES_REQUEST_DEADLINE_SECONDS,
            poll_seconds=settings.SWATCHES_DISCONNECT_POLL_SECONDS,
        )
    except ClientDisconnected:
        logger.info("swatches.client_disconnected")
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except (ShopifyApiError, SwatchCollectionTimeout):
        raise
    except Exception:
        # Returned from the route so CORSMiddleware still adds its headers.
        logger.exception("swatches.unexpected_error")
        return ORJSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    return ORJSONResponse(
        content=serialize_swatches(records, include_main_image_url=collector.include_main_image_url)
    )


@router.options("/swatches")
@router.options("/api/swatches")
async def swatches_preflight() -> Response:
    return Response(status_code=200)
