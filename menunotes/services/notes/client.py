"""
Low-level client for a memos-compatible note service.

This "escape hatch" is also used internally by NotesService to implement
developer-friendly methods. It returns typed Pydantic models from
menunotes.services.notes.models.wire and hides HTTP details.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Dict, Iterator, Optional

import requests
from pydantic import ValidationError

from .domain import Visibility, note_name
from .models.wire import (
    WireAttachment,
    WireCreateAttachmentRequest,
    WireCreateNoteRequest,
    WireListNotesResponse,
    WireNote,
    WirePublicOrderRequest,
    WirePublicOrderResponse,
    WireUpdateNoteRequest,
)

LOGGER = logging.getLogger(__name__)

DEBUG_DIR = os.path.join("workspace", "notes_debug")


def _debug_enabled() -> bool:
    return bool(os.getenv("MENUNOTES_NOTES_DEBUG"))


def _debug_write(op: str, suffix: str, text: str) -> None:
    """Write ``text`` to DEBUG_DIR, capped at MENUNOTES_DEBUG_MAX_BYTES."""
    max_bytes = int(os.getenv("MENUNOTES_DEBUG_MAX_BYTES", "524288"))
    if len(text) > max_bytes:
        text = text[:max_bytes] + "\n[truncated]\n"
    path = os.path.join(DEBUG_DIR, f"{time.strftime('%Y%m%d-%H%M%S')}_{op}_{suffix}")
    try:
        os.makedirs(DEBUG_DIR, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as exc:
        LOGGER.debug("notes.debug.dump_failed %s", exc)


# ------------------------------- Errors --------------------------------------


class NotesError(Exception):
    """Base note transport error."""


class NotesAuthError(NotesError):
    """Missing or rejected access token (401/403)."""


class NotesConnectionError(NotesError):
    """The service could not be reached at all."""


class NotesRateLimited(NotesError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NotesApiError(NotesError):
    """Catch-all API error."""

    def __init__(
        self,
        message: str,
        payload: Optional[object] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.payload = payload
        self.status_code = status_code


# ------------------------------- Transport -----------------------------------


class _HttpTransport:
    """
    Minimal HTTP transport:
      - JSON requests via `json=payload`
      - Lowercase boolean query params
      - Bounded debug dumps (MENUNOTES_DEBUG_MAX_BYTES)
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session,
        base_params: Optional[Dict[str, object]] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._params = self._normalize_params(base_params or {})
        self._timeout = timeout
        LOGGER.debug("Initialized _HttpTransport with base_url: %s", self._base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _normalize_params(params: Dict[str, object]) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for k, v in params.items():
            if v is None:
                continue
            if isinstance(v, bool):
                out[k] = "true" if v else "false"
            else:
                out[k] = str(v)
        return out

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, object]] = None,
        payload: Optional[Dict] = None,
        expect_json: bool = True,
    ):
        url = self._build_url(path)
        query = {**self._params, **self._normalize_params(params or {})}
        LOGGER.info("%s to %s", method, url)
        try:
            resp = self._session.request(
                method, url, params=query or None, json=payload, timeout=self._timeout
            )
        except requests.RequestException as exc:
            LOGGER.error("%s to %s failed: %s", method, url, exc)
            raise NotesConnectionError(f"{method} {url} failed: {exc}") from exc
        code = getattr(resp, "status_code", 0)
        LOGGER.debug("%s to %s returned status %d", method, url, code)
        if code >= 400:
            self._dump_http_debug(method.lower(), url, payload, resp)
            if code in (401, 403):
                LOGGER.error("%s to %s failed with auth error: %d", method, url, code)
                raise NotesAuthError(f"HTTP {code}: unauthorized")
            if code == 429:
                retry_after = None
                hdr = resp.headers.get("Retry-After")
                if hdr:
                    try:
                        retry_after = float(hdr)
                    except ValueError:
                        retry_after = None
                LOGGER.warning(
                    "%s to %s was rate-limited. Retry after: %s",
                    method,
                    url,
                    retry_after,
                )
                raise NotesRateLimited(
                    "HTTP 429: rate limited", retry_after=retry_after
                )
            # Try to include server json error if possible
            try:
                body = resp.json()
            except ValueError:
                body = getattr(resp, "text", None)
            LOGGER.error("%s to %s failed with code %d", method, url, code)
            raise NotesApiError(f"HTTP {code}", payload=body, status_code=code)
        if not expect_json:
            return None
        try:
            json_response = resp.json()
            LOGGER.debug("Successfully parsed JSON response from %s", url)
            return json_response
        except ValueError:
            self._dump_http_debug(method.lower(), url, payload, resp)
            LOGGER.error("Failed to parse JSON response from %s", url)
            raise NotesApiError(
                "Invalid JSON response",
                payload=getattr(resp, "text", None),
                status_code=code,
            )

    @staticmethod
    def _dump_http_debug(op: str, url: str, payload: Optional[Dict], resp) -> None:
        if not _debug_enabled():
            return
        _debug_write(
            op,
            "http_request.json",
            json.dumps({"url": url, "payload": payload}, ensure_ascii=False, indent=2),
        )
        _debug_write(
            op,
            "http_response.txt",
            f"status={getattr(resp, 'status_code', None)}\nurl={url}\n"
            f"headers={dict(getattr(resp, 'headers', None) or {})}\n\n"
            f"{getattr(resp, 'text', None) or ''}",
        )

    # Simple helper for attachment bytes (streaming GET)
    def get_stream(self, url: str, chunk_size: int = 65536) -> Iterator[bytes]:
        url = self._build_url(url)
        LOGGER.info("GET stream from %s", url)
        try:
            resp = self._session.get(url, stream=True, timeout=self._timeout)
        except requests.RequestException as exc:
            LOGGER.error("GET stream from %s failed: %s", url, exc)
            raise NotesConnectionError(f"GET {url} failed: {exc}") from exc
        code = getattr(resp, "status_code", 0)
        if code >= 400:
            self._dump_http_debug("attachment_get", url, {}, resp)
            LOGGER.error("GET stream from %s failed with code %d", url, code)
            raise NotesApiError(
                f"HTTP {code} on attachment GET",
                payload=getattr(resp, "text", None),
                status_code=code,
            )
        for chunk in resp.iter_content(chunk_size=chunk_size):
            if chunk:
                yield chunk


# ------------------------------ Raw client -----------------------------------


class MemosNotesClient:
    """
    Raw client for the note service.

    Methods map 1:1 to endpoints:
      - GET    /api/v1/memos
      - GET    /api/v1/memos/{id}
      - POST   /api/v1/memos
      - PATCH  /api/v1/memos/{id}
      - DELETE /api/v1/memos/{id}
      - POST   /api/v1/attachments
      - GET    /public/menu            (public surface, no token needed)
      - POST   /public/menu-order      (public surface, no token needed)
    """

    _API = "/api/v1"

    def __init__(
        self,
        base_url: str,
        session: requests.Session,
        *,
        public_base_url: Optional[str] = None,
        base_params: Optional[Dict[str, object]] = None,
        timeout: Optional[float] = None,
    ):
        self._http = _HttpTransport(base_url, session, base_params, timeout=timeout)
        self._public = _HttpTransport(
            public_base_url or base_url, session, timeout=timeout
        )
        LOGGER.info("MemosNotesClient initialized.")

    # ----- Notes -----

    def list_notes(
        self,
        *,
        page_token: Optional[str] = None,
        page_size: Optional[int] = None,
        filter_expr: Optional[str] = None,
    ) -> WireListNotesResponse:
        params = {"pageToken": page_token, "pageSize": page_size, "filter": filter_expr}
        data = self._http.request("GET", f"{self._API}/memos", params=params)
        resp = self._validate(WireListNotesResponse, data, "memos.list")
        LOGGER.info("List returned %d notes.", len(resp.memos))
        return resp

    def get_note(self, note_id: str) -> WireNote:
        data = self._http.request("GET", f"{self._API}/{note_name(note_id)}")
        return self._validate(WireNote, data, "memos.get")

    def create_note(self, content: str, visibility: Visibility) -> WireNote:
        payload = WireCreateNoteRequest(content=content, visibility=visibility)
        data = self._http.request(
            "POST", f"{self._API}/memos", payload=payload.model_dump(mode="json")
        )
        return self._validate(WireNote, data, "memos.create")

    def update_note_content(self, note_id: str, content: str) -> WireNote:
        payload = WireUpdateNoteRequest(content=content)
        data = self._http.request(
            "PATCH",
            f"{self._API}/{note_name(note_id)}",
            params={"updateMask": "content"},
            payload=payload.model_dump(mode="json"),
        )
        return self._validate(WireNote, data, "memos.update")

    def delete_note(self, note_id: str) -> None:
        self._http.request(
            "DELETE", f"{self._API}/{note_name(note_id)}", expect_json=False
        )

    # ----- Attachments -----

    def create_attachment(self, req: WireCreateAttachmentRequest) -> WireAttachment:
        LOGGER.info("Creating attachment %s for %s", req.filename, req.memo)
        data = self._http.request(
            "POST", f"{self._API}/attachments", payload=req.model_dump(mode="json")
        )
        return self._validate(WireAttachment, data, "attachments.create")

    def attachment_url(self, att: WireAttachment) -> str:
        if att.externalLink:
            return att.externalLink
        return f"{self._http.base_url}/file/{att.name}/{att.filename}"

    def download_stream(self, url: str, *, chunk_size: int = 65536) -> Iterator[bytes]:
        yield from self._http.get_stream(url, chunk_size=chunk_size)

    # ----- Public surface -----

    def public_menu(self, public_id: str, note_id: Optional[str] = None) -> WireNote:
        data = self._public.request(
            "GET",
            "/public/menu",
            params={"publicId": public_id, "note": note_id},
        )
        return self._validate(WireNote, data, "public.menu")

    def public_menu_order(
        self, req: WirePublicOrderRequest
    ) -> WirePublicOrderResponse:
        data = self._public.request(
            "POST",
            "/public/menu-order",
            payload=req.model_dump(mode="json", exclude_none=True),
        )
        return self._validate(WirePublicOrderResponse, data, "public.order")

    # ----- Validation -----

    @staticmethod
    def _validate(model, data, op: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            MemosNotesClient._log_validation(op, data, e)
            LOGGER.error("%s response validation failed.", op)
            raise NotesApiError(f"{op} response validation failed", payload=data)

    @staticmethod
    def _log_validation(op: str, data, err: ValidationError) -> None:
        if not _debug_enabled():
            return
        _debug_write(
            op,
            "validation.json",
            json.dumps(
                {"op": op, "errors": err.errors(), "data": data},
                ensure_ascii=False,
                indent=2,
                default=str,
            ),
        )
