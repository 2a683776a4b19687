"""Best-effort removal of documents attached to retired timesheets."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol
from uuid import UUID

from timesheet_engine.repositories.base import DocumentStore

logger = logging.getLogger(__name__)


class DocumentFileRemover(Protocol):
    """Removes the stored file behind a document path."""

    async def remove(self, document_path: str) -> None: ...


class LocalDocumentFiles:
    """Documents kept on the local upload volume."""

    def __init__(self, upload_path: str | Path):
        self.upload_path = Path(upload_path)

    def resolve(self, document_path: str) -> Path:
        return self.upload_path / document_path

    async def remove(self, document_path: str) -> None:
        await asyncio.to_thread(self.resolve(document_path).unlink)


async def retire_documents(
    documents: DocumentStore,
    files: DocumentFileRemover,
    timesheet_id: UUID,
    deleted_at: datetime,
) -> int:
    """Remove the files of a timesheet's documents and soft-delete the records.

    Failures are logged and skipped; they never interrupt the caller.
    Returns the number of document records soft-deleted.
    """
    retired = 0
    for document in await documents.find(timesheet_id):
        if not document.remote_stored:
            try:
                await files.remove(document.document_path)
            except OSError:
                logger.warning(
                    "Could not remove file %s of document %s (timesheet %s)",
                    document.document_path,
                    document.id,
                    timesheet_id,
                    exc_info=True,
                )

        try:
            await documents.update(document.id, deleted_at=deleted_at)
        except Exception:
            logger.exception(
                "Could not soft-delete document %s of timesheet %s",
                document.id,
                timesheet_id,
            )
            continue
        retired += 1

    return retired
