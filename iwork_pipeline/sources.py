"""Box folder listing and file download over the Box REST API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import requests

from .errors import RemoteError, RemoteErrorKind
from .filters import select_candidates
from .models import CandidateFile, RemoteEntry
from .utils import BOX_API_URL, DEFAULT_TIMEOUT, parse_timestamp, remove_quietly

log = logging.getLogger(__name__)

LIST_FIELDS = "id,name,type,size,modified_at"
PAGE_SIZE = 1000
CHUNK_SIZE = 64 * 1024


class BoxClient:
    """Authenticated client for the two Box endpoints the pipeline needs.

    Every request carries ``Authorization: Bearer <token>`` and a fixed
    timeout. Nothing is retried: a timeout is reported like any other
    transport failure.
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = BOX_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = PAGE_SIZE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.access_token = access_token or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = max(1, page_size)
        self._session = session

    def _get_session(self) -> requests.Session:
        """Get or create requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
        return self._session

    def _get(self, endpoint: str, **kwargs: Any) -> requests.Response:
        """Issue an authenticated GET and map failures to ``RemoteError``."""
        if not self.access_token.strip():
            raise RemoteError(
                "Box access token is missing", kind=RemoteErrorKind.UNAUTHORIZED
            )

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault("timeout", self.timeout)
        headers = {"Authorization": f"Bearer {self.access_token}"}

        log.debug("GET %s", url)
        try:
            response = self._get_session().get(url, headers=headers, **kwargs)
        except requests.Timeout as exc:
            raise RemoteError(
                f"request to {url} timed out after {self.timeout}s"
            ) from exc
        except requests.RequestException as exc:
            raise RemoteError(f"request to {url} failed: {exc}") from exc

        status = response.status_code
        if status == 401:
            response.close()
            raise RemoteError(
                "Box rejected the access token (401 Unauthorized)",
                kind=RemoteErrorKind.UNAUTHORIZED,
                status_code=status,
            )
        if not 200 <= status < 300:
            reason = getattr(response, "reason", "") or ""
            response.close()
            raise RemoteError(
                f"Box API error: {status} {reason}".rstrip(),
                kind=RemoteErrorKind.HTTP,
                status_code=status,
            )
        return response

    # -----------------------------------------------------------------------
    # Listing
    # -----------------------------------------------------------------------

    def list_children(self, folder_id: str) -> list[RemoteEntry]:
        """List every item in a Box folder (non-recursive), all pages."""
        entries: list[RemoteEntry] = []
        offset = 0
        while True:
            params = {"fields": LIST_FIELDS, "limit": self.page_size, "offset": offset}
            response = self._get(f"folders/{folder_id}/items", params=params)
            try:
                body = response.json()
            except ValueError as exc:
                raise RemoteError(
                    f"malformed listing for folder {folder_id}: {exc}",
                    kind=RemoteErrorKind.MALFORMED,
                ) from exc
            finally:
                response.close()

            page = _parse_page(body, folder_id)
            entries.extend(page)
            offset += len(page)

            total = body.get("total_count")
            if not page or not isinstance(total, int) or offset >= total:
                break

        log.debug("Folder %s: %s entries listed", folder_id, len(entries))
        return entries

    def list_candidates(self, folder_id: str) -> list[CandidateFile]:
        """List a folder and keep only supported iWork files."""
        candidates = select_candidates(self.list_children(folder_id))
        log.info("Found %s iWork files in Box folder %s", len(candidates), folder_id)
        return candidates

    # -----------------------------------------------------------------------
    # Download
    # -----------------------------------------------------------------------

    def download(self, file_id: str, destination: Path) -> Path:
        """Stream a file's content to *destination*.

        A partially written destination is removed before the error is raised.
        """
        response = self._get(f"files/{file_id}/content", stream=True)
        try:
            with open(destination, "wb") as fh:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        except requests.RequestException as exc:
            remove_quietly(destination)
            raise RemoteError(f"download of file {file_id} interrupted: {exc}") from exc
        except OSError as exc:
            remove_quietly(destination)
            raise RemoteError(
                f"failed to write {destination}: {exc}", kind=RemoteErrorKind.WRITE
            ) from exc
        finally:
            response.close()

        log.info("Downloaded %s to %s", file_id, destination)
        return destination


def _parse_page(body: Any, folder_id: str) -> list[RemoteEntry]:
    if not isinstance(body, dict) or not isinstance(body.get("entries"), list):
        raise RemoteError(
            f"malformed listing for folder {folder_id}: no entries list",
            kind=RemoteErrorKind.MALFORMED,
        )
    try:
        return [_parse_entry(raw) for raw in body["entries"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise RemoteError(
            f"malformed entry in folder {folder_id}: {exc!r}",
            kind=RemoteErrorKind.MALFORMED,
        ) from exc


def _parse_entry(raw: dict[str, Any]) -> RemoteEntry:
    return RemoteEntry(
        id=str(raw["id"]),
        name=str(raw["name"]),
        kind=str(raw.get("type", "file")),
        size=int(raw.get("size") or 0),
        modified_at=parse_timestamp(raw.get("modified_at")),
    )
