"""Pydantic schemas for competitor image uploads."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CompetitorImageData(BaseModel):
    id: str | int | None = Field(
        default=None,
        description="Library record id; null when the record could not be saved.",
    )
    url: str
    file_name: str = Field(..., description="Storage path of the uploaded object.")
    original_name: str
    size: int
    type: str


class CompetitorImageUploadResponse(BaseModel):
    success: bool = True
    message: str = "上传成功"
    data: CompetitorImageData
