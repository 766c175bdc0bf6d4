"""Batch entry point: enqueue captured documents from JSON and run one pass.

Usage:
    python -m docbatch.main post.json
    python -m docbatch.main posts.json --upload --folder-id <DRIVE_FOLDER_ID>
    python -m docbatch.main --retry-failed
    python -m docbatch.main --upload-history
"""

import argparse
import json
import sys
from pathlib import Path

import httpx

from docbatch.config.settings import Settings
from docbatch.database.connection import close_pool, init_pool
from docbatch.database.repositories.kv_repository import PostgresKeyValueStore
from docbatch.logging.logger import Log
from docbatch.pipeline.builder import build_orchestrator, default_options
from docbatch.pipeline.models import BatchProgress
from docbatch.queue.exceptions import InvalidDocumentError, SourceUnavailableError
from docbatch.queue.models import CapturedDocument
from docbatch.queue.serialization import captured_document_from_dict
from docbatch.storage.exceptions import StorageError
from docbatch.storage.factory import KeyValueStoreFactory
from docbatch.upload.history import UploadHistory


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docbatch",
        description="Render captured documents to PDF and optionally upload them.",
    )
    parser.add_argument("documents", nargs="*", type=Path, help="JSON files with captured documents")
    parser.add_argument("--upload", action="store_true", help="Upload rendered PDFs")
    parser.add_argument("--folder-id", default=None, help="Target folder in the remote store")
    parser.add_argument(
        "--retry-failed", action="store_true", help="Return failed items to pending first"
    )
    parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop the run at the first failed item"
    )
    parser.add_argument(
        "--upload-history",
        action="store_true",
        help="Print recorded upload attempts as JSON lines and exit",
    )
    return parser.parse_args(argv)


def load_documents(path: Path) -> list[CapturedDocument]:
    """Read one captured document, or a list of them, from a JSON file.

    Raises:
        SourceUnavailableError: if the file cannot be read or parsed.
        InvalidDocumentError: if an entry is not a valid document.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SourceUnavailableError(f"Cannot read {path}: {exc}") from exc
    entries = payload if isinstance(payload, list) else [payload]
    return [captured_document_from_dict(entry) for entry in entries]


def _log_progress(progress: BatchProgress) -> None:
    Log.debug(
        f"[{progress.phase.value}] {progress.completed}/{progress.total} "
        f"({progress.percentage}%) current={progress.current_item}"
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point: settings -> store -> orchestrator -> one batch run."""
    args = _parse_args(argv)
    settings = Settings()
    if args.upload:
        settings = settings.model_copy(update={"upload_enabled": True})
    Log.configure(settings.log_level)

    try:
        if settings.storage_backend == "postgres":
            init_pool(settings)
        store = KeyValueStoreFactory.create(settings)
        if isinstance(store, PostgresKeyValueStore):
            store.ensure_schema()

        if args.upload_history:
            history = UploadHistory(store, limit=settings.upload_history_limit)
            for record in history.entries():
                sys.stdout.write(json.dumps(record.to_dict()) + "\n")
            return 0

        with httpx.Client(
            timeout=settings.image_fetch_timeout_seconds, follow_redirects=True
        ) as image_client, httpx.Client(timeout=settings.upload_timeout_seconds) as upload_client:
            queue_store, orchestrator = build_orchestrator(
                settings, image_client, store, upload_client=upload_client
            )

            rejected = 0
            for path in args.documents:
                try:
                    for document in load_documents(path):
                        queue_store.enqueue(document)
                except (SourceUnavailableError, InvalidDocumentError) as exc:
                    rejected += 1
                    Log.error(f"Skipping {path}: {exc}")

            if args.retry_failed:
                queue_store.retry_failed()

            overrides: dict[str, object] = {"on_progress": _log_progress}
            if args.folder_id:
                overrides["container_id"] = args.folder_id
            if args.stop_on_error:
                overrides["continue_on_error"] = False
            progress = orchestrator.process(default_options(settings, **overrides))

        snapshot = queue_store.snapshot()
        Log.info(
            f"Batch complete: {progress.success_count} succeeded, {progress.failed_count} failed; "
            f"queue status {snapshot.status.value}"
        )
        return 1 if progress.failed_count or rejected else 0
    except StorageError as exc:
        Log.error(f"Storage unavailable: {exc}")
        return 1
    finally:
        if settings.storage_backend == "postgres":
            close_pool()


if __name__ == "__main__":
    sys.exit(main())
