"""Shared test fixtures for the summarizer client test suite."""

from __future__ import annotations

import pytest

from summarizer_client.auth import Credential
from summarizer_client.types import SelectedDocument

MIB = 1024 * 1024


@pytest.fixture
def test_token() -> str:
    return "test-token"


@pytest.fixture
def credential(test_token: str) -> Credential:
    return Credential(token=test_token)


@pytest.fixture
def paper_pdf() -> SelectedDocument:
    """A 2 MiB PDF, comfortably under the upload limit."""
    return SelectedDocument.from_bytes("paper.pdf", b"%PDF" + b"x" * (2 * MIB - 4))


@pytest.fixture
def oversize_pdf() -> SelectedDocument:
    """A 5 MiB PDF, over the 4.5 MiB upload limit."""
    return SelectedDocument.from_bytes("huge.pdf", b"x" * (5 * MIB))
