from __future__ import annotations

from fastapi import Depends, Request

from swatch_proxy.collector import SwatchCollector
from swatch_proxy.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_swatch_collector(settings: Settings = Depends(get_app_settings)) -> SwatchCollector:
    # Raises ConfigurationError before any upstream call when credentials are missing.
    return SwatchCollector.from_settings(settings)
