#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Persistence Client - async REST access to the book persistence service.

Implements the PersistenceService protocol over httpx. Status codes are
mapped onto the error taxonomy so callers can apply their reconciliation
rules (update-404 becomes create, delete-404 counts as success) without
inspecting HTTP details.

Usage:
    async with PersistenceClient(base_url="http://localhost:8000", token="...") as client:
        chapters = await client.list_chapters(document_id)
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from config.settings import settings
from config.logging_config import get_logger
from ..errors import (
    AuthenticationError,
    PersistenceError,
    ResourceNotFoundError,
    ServerRejectionError,
)

logger = get_logger(__name__)


class PersistenceClient:
    """
    httpx-based client for the persistence service.

    Features:
    - Bearer-token authentication (token issued by the external auth service)
    - Exponential backoff on HTTP 429 (rate limited)
    - Error mapping: 404 -> ResourceNotFoundError, 401/403 -> AuthenticationError,
      publish 4xx -> ServerRejectionError, other failures -> PersistenceError
    - Injectable transport for tests (e.g. httpx.ASGITransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize persistence client.

        Args:
            base_url: Service root URL (default: settings.api_base_url)
            token: Bearer token of the signed-in user, None for anonymous
            timeout: Request timeout in seconds
            max_retries: Retry attempts when rate limited
            retry_delay: Initial backoff delay in seconds
            transport: Optional httpx transport override
        """
        self.base_url = base_url or settings.api_base_url
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay

        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "PersistenceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ==========================================================================
    # Transport
    # ==========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        rejection_is_authoritative: bool = False,
    ) -> Any:
        """
        Issue a request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path relative to base_url
            json: Optional JSON body
            rejection_is_authoritative: Map 4xx responses to ServerRejectionError

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            PersistenceError (or a subclass) on failure
        """
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, json=json)
            except httpx.HTTPError as e:
                logger.error(f"{method} {path} failed: {e}")
                raise PersistenceError(
                    "Could not reach the server. Please check your connection.",
                    detail=str(e) or e.__class__.__name__,
                ) from e

            if response.status_code == 429 and attempt < self.max_retries:
                attempt += 1
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.info(
                    f"Rate limited on {method} {path}. "
                    f"Retrying in {delay:.1f}s (attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            if response.is_success:
                if not response.content:
                    return None
                return response.json()

            raise self._error_for(response, method, path, rejection_is_authoritative)

    def _error_for(
        self,
        response: httpx.Response,
        method: str,
        path: str,
        rejection_is_authoritative: bool,
    ) -> PersistenceError:
        """Translate an unsuccessful response into the error taxonomy"""
        status = response.status_code
        detail = response.text
        message = None
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get("error") or body.get("detail")
        except ValueError:
            pass
        if message is not None and not isinstance(message, str):
            message = str(message)

        logger.debug(f"{method} {path} -> {status}: {detail[:200]}")

        if status == 404:
            return ResourceNotFoundError(message or "Resource not found", detail=detail, status_code=status)
        if status in (401, 403):
            return AuthenticationError(
                message or "Your session has expired. Please log in again.",
                detail=detail,
                status_code=status,
            )
        if rejection_is_authoritative and 400 <= status < 500:
            return ServerRejectionError(message or "The server rejected the request", detail=detail, status_code=status)
        if status == 429:
            return PersistenceError("Too many requests. Please try again later.", detail=detail, status_code=status)
        return PersistenceError(message or f"Request failed ({status})", detail=detail, status_code=status)

    # ==========================================================================
    # Documents
    # ==========================================================================

    async def create_document(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/documents", json=payload)

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/documents/{document_id}")

    async def update_document(self, document_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/documents/{document_id}", json=payload)

    # ==========================================================================
    # Chapters
    # ==========================================================================

    async def list_chapters(self, document_id: str) -> List[Dict[str, Any]]:
        body = await self._request("GET", f"/documents/{document_id}/chapters")
        if isinstance(body, dict):
            return body.get("chapters", [])
        return body or []

    async def create_chapter(self, document_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/documents/{document_id}/chapters", json=payload)

    async def update_chapter(
        self,
        document_id: str,
        chapter_id: str,
        payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/documents/{document_id}/chapters/{chapter_id}", json=payload
        )

    async def delete_chapter(self, document_id: str, chapter_id: str) -> None:
        await self._request("DELETE", f"/documents/{document_id}/chapters/{chapter_id}")

    async def reorder_chapters(self, document_id: str, chapter_ids: List[str]) -> None:
        await self._request(
            "PUT",
            f"/documents/{document_id}/chapters/reorder",
            json={"chapter_ids": list(chapter_ids)},
        )

    # ==========================================================================
    # Reading progress
    # ==========================================================================

    async def get_reading_progress(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Saved progress for the signed-in reader, or None if there is none"""
        try:
            body = await self._request("GET", f"/documents/{document_id}/reading-progress")
        except ResourceNotFoundError:
            return None
        if isinstance(body, dict) and "progress" in body:
            return body["progress"]
        return body

    async def save_reading_progress(
        self,
        document_id: str,
        current_chapter_id: str,
        progress_percent: int
    ) -> None:
        await self._request(
            "POST",
            f"/documents/{document_id}/reading-progress",
            json={
                "current_chapter_id": current_chapter_id,
                "progress_percent": progress_percent,
            },
        )

    # ==========================================================================
    # Publishing
    # ==========================================================================

    async def publish(self, document_id: str, tag_ids: List[str]) -> Dict[str, Any]:
        body = await self._request(
            "POST",
            f"/documents/{document_id}/publish",
            json={"tagIds": list(tag_ids)},
            rejection_is_authoritative=True,
        )
        if isinstance(body, dict) and body.get("error"):
            raise ServerRejectionError(body["error"], detail=str(body))
        return body or {}

    async def list_tags(self) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/tags")
        if isinstance(body, dict):
            return body.get("tags", [])
        return body or []

    async def get_publish_slots(self) -> Dict[str, Any]:
        return await self._request("GET", "/publish-slots")
