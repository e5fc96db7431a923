"""Best-effort enrichment of records that have no artwork."""

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol

from loguru import logger

from vinylvault.core.data.repositories.record_repository import RecordRepository
from vinylvault.core.data.types import ScanReport, VinylRecord
from vinylvault.core.errors import LookupFailure, OperationInProgress, ValidationError

DEFAULT_SCAN_DELAY = 1.0

ProgressCallback = Callable[[int, int, VinylRecord], None]


class CoverLookup(Protocol):
    """Anything that can find a cover URL for an artist and album."""

    def find_album_cover(self, artist: str, album: str) -> str | None: ...


class ArtworkScanner:
    """Finds covers for records without artwork, one lookup at a time.

    Lookups are strictly sequential with a fixed pause before each one, to
    stay inside the lookup service's rate limit. A failed lookup only skips
    its own record. Covers already patched stay in place if the scan is
    abandoned part way.
    """

    def __init__(
        self,
        repository: RecordRepository,
        lookup: CoverLookup,
        delay: float = DEFAULT_SCAN_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the scanner.

        Args:
            repository: Store to read records from and patch covers into
            lookup: Artwork lookup service
            delay: Seconds to wait before each lookup
            sleep: Function used to wait
        """
        self.repository = repository
        self.lookup = lookup
        self.delay = delay
        self._sleep = sleep
        self._busy = threading.Lock()

    @property
    def is_scanning(self) -> bool:
        """Whether a scan is currently running."""
        return self._busy.locked()

    def pending(self) -> list[VinylRecord]:
        """Records a scan would look up."""
        return self.repository.get_without_cover()

    def scan(self, progress: ProgressCallback | None = None) -> ScanReport:
        """Look up covers for every record that has none.

        Args:
            progress: Called as ``progress(position, total, record)`` before each lookup

        Returns:
            ScanReport with how many of the candidates were enriched

        Raises:
            OperationInProgress: If a scan is already running
        """
        if not self._busy.acquire(blocking=False):
            raise OperationInProgress("A cover scan is already in progress.")

        try:
            queue = deque(self.pending())
            report = ScanReport(total=len(queue))
            logger.info(f"Scanning {report.total} records without covers")

            position = 0
            while queue:
                record = queue.popleft()
                position += 1
                if progress:
                    progress(position, report.total, record)
                self._process(record, report)

            logger.success(
                f"Scan complete, found covers for {report.enriched} of {report.total} records"
            )
            return report
        finally:
            self._busy.release()

    def _process(self, record: VinylRecord, report: ScanReport) -> None:
        if self.delay > 0:
            self._sleep(self.delay)

        try:
            url = self.lookup.find_album_cover(record.artist, record.album)
            if not url:
                logger.debug(f"No cover found for {record.artist} - {record.album}")
                report.not_found += 1
                return

            if record.id is not None and self.repository.set_cover(record.id, url):
                report.enriched += 1
                report.enriched_ids.append(record.id)
                logger.debug(f"Found cover for {record.artist} - {record.album}")
            else:
                # Deleted while the scan was running
                report.not_found += 1
        except LookupFailure as e:
            logger.warning(f"Error scanning {record.album}: {e}")
            report.failed += 1
        except Exception as e:
            logger.exception(f"Error scanning {record.album}: {e}")
            report.failed += 1

    def fetch_cover(self, record_id: int) -> str | None:
        """Look up the cover of a single record right away.

        Args:
            record_id: The record ID

        Returns:
            The cover URL stored on the record, or None if nothing matched

        Raises:
            ValidationError: If the record does not exist
            LookupFailure: If the lookup failed
        """
        record = self.repository.get_by_id(record_id)
        if record is None:
            raise ValidationError(f"Record {record_id} does not exist.")

        url = self.lookup.find_album_cover(record.artist, record.album)
        if not url:
            logger.info(f"Could not find a cover for {record.artist} - {record.album}")
            return None

        self.repository.set_cover(record_id, url)
        logger.info(f"Stored cover for record {record_id}")
        return url
