from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MAIN_IMAGE_KEY = "main_image"


class SwatchField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str
    value: str | None = None
    # Present only when the page query inlines the media reference.
    reference: dict[str, Any] | None = None


class SwatchRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    handle: str
    fields: list[SwatchField] = Field(default_factory=list)
    main_image_url: str | None = None

    def find_field(self, key: str) -> SwatchField | None:
        for field in self.fields:
            if field.key == key:
                return field
        return None


class PageInfo(BaseModel):
    hasNextPage: bool


class SwatchEdge(BaseModel):
    cursor: str | None = None
    node: SwatchRecord


class SwatchPage(BaseModel):
    pageInfo: PageInfo
    edges: list[SwatchEdge]

    @property
    def records(self) -> list[SwatchRecord]:
        return [edge.node for edge in self.edges]

    @property
    def last_cursor(self) -> str | None:
        if not self.edges:
            return None
        return self.edges[-1].cursor


def serialize_swatches(records: list[SwatchRecord], *, include_main_image_url: bool) -> list[dict[str, Any]]:
    exclude: dict[str, Any] = {"fields": {"__all__": {"reference"}}}
    if not include_main_image_url:
        exclude["main_image_url"] = True
    return [record.model_dump(exclude=exclude) for record in records]
