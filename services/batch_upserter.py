"""
Deduplication and chunked upsert of candidate records.

Chunks commit independently: a failing chunk is counted as errors and the
next chunk still runs. Nothing is rolled back.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence
import time
import structlog

from config import settings
from exceptions import ChunkCommitError
from parsers.row_parser import CandidateRecord
from services.catalog_service import CatalogStore

logger = structlog.get_logger(__name__)


def dedupe_by_code(records: Iterable[CandidateRecord]) -> list[CandidateRecord]:
    """
    Keep one importable record per code.

    Later rows overwrite earlier ones; the survivor keeps the position of
    the code's first occurrence. Records without code or name are dropped.
    """
    by_code: dict[str, CandidateRecord] = {}
    dropped = 0

    for record in records:
        if not record.is_importable:
            dropped += 1
            continue
        by_code[record.code] = record

    logger.debug("records_deduplicated", kept=len(by_code), dropped=dropped)
    return list(by_code.values())


@dataclass
class UpsertResult:
    """Counts for one upsert run (one file)."""
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    failed_chunks: int = 0
    processed: int = 0
    stopped: bool = False


# Called after every chunk with the running result
ChunkCallback = Callable[[UpsertResult], None]


class BatchUpserter:
    """
    Commits records to the catalog in fixed-size chunks.

    Example:
        upserter = BatchUpserter(get_catalog_service())
        result = upserter.upsert(records, existing_codes)
    """

    def __init__(
        self,
        store: CatalogStore,
        chunk_size: Optional[int] = None,
        pause_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.chunk_size = chunk_size or settings.import_upsert_chunk_size
        self.pause_ms = settings.import_chunk_pause_ms if pause_ms is None else pause_ms
        self._sleep = sleep

    def upsert(
        self,
        records: Sequence[CandidateRecord],
        existing_codes: set[str],
        on_chunk: Optional[ChunkCallback] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> UpsertResult:
        """
        Upsert records chunk by chunk.

        Args:
            records: Deduplicated importable records
            existing_codes: Codes already in the catalog (for insert/update counts)
            on_chunk: Progress callback, called after every chunk
            should_stop: Checked before each chunk; True skips the rest

        Returns:
            UpsertResult with cumulative counts
        """
        result = UpsertResult()
        total_chunks = (len(records) + self.chunk_size - 1) // self.chunk_size

        for index, start in enumerate(range(0, len(records), self.chunk_size)):
            if should_stop is not None and should_stop():
                result.stopped = True
                logger.info(
                    "upsert_stopped",
                    chunk=index,
                    remaining=len(records) - start
                )
                break

            chunk = records[start:start + self.chunk_size]

            try:
                self._commit_chunk(index, chunk)
            except ChunkCommitError as e:
                result.errors += e.record_count
                result.failed_chunks += 1
            else:
                updated = sum(1 for record in chunk if record.code in existing_codes)
                result.updated += updated
                result.inserted += len(chunk) - updated

            result.processed = start + len(chunk)

            if on_chunk is not None:
                on_chunk(result)

            if index < total_chunks - 1 and self.pause_ms > 0:
                self._sleep(self.pause_ms / 1000)

        logger.info(
            "upsert_finished",
            records=len(records),
            inserted=result.inserted,
            updated=result.updated,
            errors=result.errors,
            failed_chunks=result.failed_chunks,
            stopped=result.stopped
        )

        return result

    def _commit_chunk(self, index: int, chunk: Sequence[CandidateRecord]) -> None:
        """
        Send one chunk to the store.

        Raises:
            ChunkCommitError: If the store call fails for any reason
        """
        rows = [record.to_catalog_row() for record in chunk]
        try:
            self.store.upsert_by_code(rows)
        except Exception as e:
            logger.error(
                "chunk_commit_failed",
                chunk=index,
                size=len(chunk),
                error=str(e)
            )
            raise ChunkCommitError(
                chunk_index=index,
                record_count=len(chunk),
                message=str(e)
            ) from e

        logger.debug("chunk_committed", chunk=index, size=len(chunk))
