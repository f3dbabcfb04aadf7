"""Pydantic request/response schemas for the summarizer backend API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# -- Upload -------------------------------------------------------------------


class UploadRequest(_WireModel):
    file_name: str = Field(..., alias="fileName", min_length=1)
    content_type: str = Field(..., alias="contentType", min_length=1)


class UploadGrantResponse(_WireModel):
    upload_url: str = Field(..., alias="uploadUrl", min_length=1)
    file_key: str = Field(..., alias="fileKey", min_length=1)


# -- Summarize ----------------------------------------------------------------


class SummarizeRequest(_WireModel):
    file_key: str = Field(..., alias="fileKey", min_length=1)


class SummarizeResponse(_WireModel):
    summary: str | None = None
    summary_preview: str | None = Field(None, alias="summaryPreview")
    created_at: datetime | None = Field(None, alias="createdAt")


# -- History ------------------------------------------------------------------


class HistoryItem(_WireModel):
    file_key: str = Field(..., alias="fileKey", min_length=1)
    created_at: datetime = Field(..., alias="createdAt")
    summary_preview: str | None = Field(None, alias="summaryPreview")
    summary: str | None = None


class HistoryResponse(_WireModel):
    items: list[HistoryItem] = Field(default_factory=list)


# -- Delete -------------------------------------------------------------------


class DeleteRequest(_WireModel):
    file_key: str = Field(..., alias="fileKey", min_length=1)
