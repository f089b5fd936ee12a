"""Pydantic schemas for image generation."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SequentialImageOptions(BaseModel):
    max_images: int = Field(..., ge=1, le=15)


class ImageGenerationRequest(BaseModel):
    """Seedream generation request as sent by the design studio."""

    prompt: str | None = Field(default=None, description="Text prompt for the image.")
    image: list[str] | None = Field(
        default=None,
        description="Reference image URLs (or data URLs).",
    )
    size: str | None = Field(default=None, description="Output size, e.g. '2K' or '2048x2048'.")
    sequential_image_generation: str | None = Field(
        default=None,
        description="'auto' to let the model return a related image group.",
    )
    sequential_image_generation_options: SequentialImageOptions | None = None
