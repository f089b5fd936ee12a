"""Pydantic schemas for competitor image context scraping."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ImageInfoRequest(BaseModel):
    html: str = Field(..., description="HTML snapshot of the page holding the image.")
    image_url: str = Field(..., description="Absolute URL of the target image.")
    page_url: str | None = Field(
        default=None,
        description="URL of the page; used to resolve relative src and pick site rules.",
    )


class ImageInfo(BaseModel):
    """Attributes of the image element plus product context found around it."""

    alt: str = ""
    title: str = ""
    width: int = 0
    height: int = 0
    class_name: str = ""
    id: str = ""
    product_name: str = ""
    price: str = ""
    description: str = ""


class ImageInfoResponse(ImageInfo):
    found: bool = Field(..., description="Whether the image element was located.")
    proxy_url: str = Field(..., description="URL that relays the image through this service.")
