"""
Backing stores for board documents.

Both stores speak the document shape defined in io_json. JsonFileStore keeps
one file per user on local disk; HttpBoardStore talks to a remote service and
authenticates every call with a bearer token from a caller-supplied
credential provider (token acquisition itself is not handled here).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Optional, Protocol
from urllib.parse import quote

import requests

from roster_board.errors import TransportError
from roster_board.io_json import (DocumentError, document_from_dict,
    document_to_dict, load_document, save_document)
from roster_board.models import BoardDocument
from roster_board.settings import Settings

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], str]


class BoardStore(Protocol):
    def load(self, user: str) -> BoardDocument: ...

    def save(self, user: str, doc: BoardDocument) -> None: ...


class JsonFileStore:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, user: str) -> Path:
        safe = re.sub(r"[^\w.-]", "_", user) or "_"
        return self.directory / f"{safe}.json"

    def load(self, user: str) -> BoardDocument:
        path = self.path_for(user)
        if not path.exists():
            logger.info("No saved board for %s at %s; starting empty", user, path)
            return BoardDocument()
        try:
            return load_document(path)
        except OSError as e:
            raise TransportError(f"Could not read {path}: {e}") from e
        except DocumentError as e:
            raise TransportError(f"{path} is not a valid board: {e}") from e

    def save(self, user: str, doc: BoardDocument) -> None:
        path = self.path_for(user)
        try:
            save_document(doc, path)
        except OSError as e:
            raise TransportError(f"Could not write {path}: {e}") from e
        logger.info("Saved %d table(s) for %s", len(doc.board.tables), user)


class HttpBoardStore:
    def __init__(self, base_url: str, credential_provider: CredentialProvider,
                 timeout: float = 30.0,
                 session: Optional[requests.Session] = None) -> None:
        if not base_url:
            raise ValueError("Store URL is not configured")
        self.base_url            = base_url.rstrip("/")
        self.credential_provider = credential_provider
        self.timeout             = timeout
        self._http               = session or requests.Session()

    def _url(self, user: str) -> str:
        return f"{self.base_url}/users/{quote(user, safe='')}/board"

    def _headers(self) -> dict:
        try:
            token = self.credential_provider()
        except Exception as e:
            raise TransportError(f"Could not obtain credentials: {e}") from e
        return {"Authorization": f"Bearer {token}"}

    def load(self, user: str) -> BoardDocument:
        url = self._url(user)
        try:
            resp = self._http.get(url, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json() if resp.content else {}
        except requests.RequestException as e:
            raise TransportError(f"Load failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Store returned invalid JSON: {e}") from e
        try:
            return document_from_dict(data)
        except DocumentError as e:
            raise TransportError(f"Store returned a malformed board: {e}") from e

    def save(self, user: str, doc: BoardDocument) -> None:
        url = self._url(user)
        try:
            resp = self._http.put(url, json=document_to_dict(doc),
                                  headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Save failed: {e}") from e
        logger.info("Saved %d table(s) for %s", len(doc.board.tables), user)


def store_from_settings(settings: Settings) -> BoardStore:
    """The HTTP store when a store URL is configured, else the local file store."""
    if settings.store_url:
        def token() -> str:
            if not settings.store_token:
                raise TransportError("No store token configured (ROSTER_STORE_TOKEN)")
            return settings.store_token

        return HttpBoardStore(settings.store_url, token, settings.timeout_s)
    return JsonFileStore(settings.store_dir)
