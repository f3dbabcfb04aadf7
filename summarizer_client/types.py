from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Characters kept when the backend does not send a preview.
PREVIEW_CHARS = 200


@dataclass(frozen=True)
class SelectedDocument:
    name: str
    content_type: str
    size: int
    data: bytes = field(repr=False)

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str | None = None) -> SelectedDocument:
        return cls(
            name=name,
            content_type=content_type or guess_content_type(name),
            size=len(data),
            data=data,
        )

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> SelectedDocument:
        p = Path(path)
        return cls.from_bytes(p.name, p.read_bytes(), content_type)


@dataclass
class UploadGrant:
    upload_url: str = field(repr=False)  # pre-signed, treat as a secret
    file_key: str
    used: bool = False


@dataclass(frozen=True)
class SummaryRecord:
    file_key: str
    summary: str
    preview: str
    created_at: datetime


@dataclass(frozen=True)
class HistoryEntry:
    file_key: str
    created_at: datetime
    preview: str
    summary: str | None = None  # only when the listing includes full text


@dataclass(frozen=True)
class DeletionResult:
    file_key: str
    ok: bool
    reason: str | None = None  # set when ok is False


def guess_content_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_CONTENT_TYPE


def make_preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
