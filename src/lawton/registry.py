"""Map a document's external path to its internal id."""
from __future__ import annotations

import logging
from typing import Optional

from lawton.errors import StorageError
from lawton.ingest.models import Document
from lawton.store import ChunkStore

LOGGER = logging.getLogger(__name__)


class DocumentRegistry:
    """Upsert documents by ``path``; previously stored chunks are left untouched."""

    def __init__(self, store: ChunkStore) -> None:
        self._store = store

    def upsert(
        self,
        path: str,
        *,
        sharepoint_url: str,
        title: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> str:
        document = Document(
            path=path,
            sharepoint_url=sharepoint_url,
            title=title,
            mime_type=mime_type,
        )
        try:
            previous = self._store.get_document(path)
            doc_id = self._store.upsert_document(document)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to upsert document {path!r}", cause=exc) from exc
        if previous is None:
            LOGGER.info("Registered document %s as %s", path, doc_id)
        else:
            LOGGER.info("Replaced metadata of document %s (%s)", path, doc_id)
        return doc_id
