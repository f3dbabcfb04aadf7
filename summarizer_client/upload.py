"""Two-phase upload: exchange file metadata for a grant, then PUT the bytes.

Phase 1: POST /upload {fileName, contentType} -> {uploadUrl, fileKey}
Phase 2: PUT uploadUrl with the raw bytes and the same Content-Type

The fileKey returned to callers is always the one embedded in the grant.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from summarizer_client.api import BackendClient, is_success, response_text
from summarizer_client.auth import Credential
from summarizer_client.errors import GrantConsumedError, GrantError, TransferError
from summarizer_client.models import UploadGrantResponse, UploadRequest
from summarizer_client.types import SelectedDocument, UploadGrant

logger = logging.getLogger(__name__)


class UploadCoordinator:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def request_grant(self, document: SelectedDocument, credential: Credential) -> UploadGrant:
        """Ask the backend for a single-use pre-signed upload URL.

        Raises GrantError on a non-2xx status, a transport failure or a body
        that is not a grant. The raw body is kept on the error.
        """
        body = UploadRequest(file_name=document.name, content_type=document.content_type)
        try:
            resp = await self._backend.post_json(
                "/upload", body.model_dump(by_alias=True), credential
            )
        except httpx.HTTPError as e:
            raise GrantError(None, message=f"Upload API error: {e}") from e

        text = response_text(resp)
        if not is_success(resp):
            logger.warning("Upload grant refused: status=%d file=%s", resp.status_code, document.name)
            raise GrantError(resp.status_code, text)

        try:
            grant = UploadGrantResponse.model_validate_json(resp.content)
        except PydanticValidationError as e:
            raise GrantError(
                resp.status_code, text, message="Upload API error: malformed grant response"
            ) from e

        logger.info("Upload grant issued: fileKey=%s", grant.file_key)
        return UploadGrant(upload_url=grant.upload_url, file_key=grant.file_key)

    async def transfer(self, document: SelectedDocument, grant: UploadGrant) -> str:
        """PUT the document bytes to the grant's URL and return its fileKey.

        The grant is consumed whether the transfer succeeds or fails.
        """
        if grant.used:
            raise GrantConsumedError(f"Upload grant for {grant.file_key} has already been used")
        grant.used = True

        try:
            resp = await self._backend.put_bytes(grant.upload_url, document.data, document.content_type)
        except httpx.HTTPError as e:
            raise TransferError(None, message=f"Storage upload failed: {e}") from e

        if not is_success(resp):
            logger.warning("Storage transfer failed: status=%d fileKey=%s", resp.status_code, grant.file_key)
            raise TransferError(resp.status_code, response_text(resp))

        logger.info("Upload complete: fileKey=%s bytes=%d", grant.file_key, document.size)
        return grant.file_key

    async def upload(self, document: SelectedDocument, credential: Credential) -> str:
        grant = await self.request_grant(document, credential)
        return await self.transfer(document, grant)
