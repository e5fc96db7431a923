"""Record repository: the persisted store of the collection."""

from collections.abc import Iterable
from typing import Any

from loguru import logger
from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session, selectinload

from vinylvault.core.data.database import get_session
from vinylvault.core.data.models.db import Vinyl, VinylGenre
from vinylvault.core.data.types import EDITABLE_FIELDS, VinylRecord
from vinylvault.core.errors import IntegrityError, ValidationError


class RecordRepository:
    """Repository for record-related database operations.

    The repository is the only owner of stored records. Everything it returns
    is a detached ``VinylRecord`` snapshot; changes go back through
    ``create``/``update``/``delete``.
    """

    def __init__(self, session: Session | None = None) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session (creates a new one if not provided)
        """
        self.session = session or get_session()

    def _get_row(self, record_id: int) -> Vinyl | None:
        return (
            self.session.query(Vinyl)
            .options(selectinload(Vinyl.genre_entries))
            .filter(Vinyl.id == record_id)
            .first()
        )

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except Exception as e:
            logger.error(f"Failed to {action}: {e}")
            self.session.rollback()
            raise

    def get_by_id(self, record_id: int) -> VinylRecord | None:
        """Get a record by its ID.

        Args:
            record_id: The record ID

        Returns:
            The record if found, None otherwise
        """
        row = self._get_row(record_id)
        return row.to_record() if row else None

    def get_all(self) -> list[VinylRecord]:
        """Get every stored record.

        Callers must not rely on the order; use the query engine to sort.

        Returns:
            List of all records
        """
        rows = (
            self.session.query(Vinyl)
            .options(selectinload(Vinyl.genre_entries))
            .order_by(Vinyl.id)
            .all()
        )
        return [row.to_record() for row in rows]

    def get_without_cover(self) -> list[VinylRecord]:
        """Get the records that have no artwork.

        Returns:
            List of records whose ``cover_url`` is empty or missing
        """
        rows = (
            self.session.query(Vinyl)
            .options(selectinload(Vinyl.genre_entries))
            .filter(or_(Vinyl.cover_url.is_(None), Vinyl.cover_url == ""))
            .order_by(Vinyl.id)
            .all()
        )
        return [row.to_record() for row in rows]

    def get_identity_keys(self) -> set[str]:
        """Get the deduplication keys of every stored record.

        Returns:
            Set of ``artist|album`` identity keys
        """
        rows = self.session.execute(select(Vinyl.artist, Vinyl.album)).all()
        return {VinylRecord(artist=artist, album=album).identity_key for artist, album in rows}

    def count(self) -> int:
        """Count stored records.

        Returns:
            Number of records in the store
        """
        return self.session.scalar(select(func.count()).select_from(Vinyl)) or 0

    def create(self, record: VinylRecord) -> int:
        """Store a new record.

        Any id on the given record is ignored; the store assigns a new one.

        Args:
            record: The record to store

        Returns:
            The id assigned to the new record
        """
        row = Vinyl.from_record(record)
        self.session.add(row)
        self._commit("create record")
        logger.debug(f"Created record {row.id}: {row.artist} - {row.album}")
        return row.id

    def bulk_create(self, records: Iterable[VinylRecord]) -> list[int]:
        """Store many records in a single transaction.

        Either every record is stored or none is.

        Args:
            records: Records to store (their ids are ignored)

        Returns:
            The ids assigned, in input order
        """
        rows = [Vinyl.from_record(record) for record in records]
        if not rows:
            return []

        self.session.add_all(rows)
        self._commit("bulk insert records")
        logger.info(f"Bulk inserted {len(rows)} records")
        return [row.id for row in rows]

    def update(self, record_id: int, data: dict[str, Any]) -> bool:
        """Update some fields of a stored record.

        ``id`` and ``added_at`` can never be changed.

        Args:
            record_id: The record ID
            data: Field names mapped to new values

        Returns:
            True if the record was updated, False if it does not exist

        Raises:
            ValidationError: If a field is unknown, immutable, or artist/album is blank
        """
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        for key in ("artist", "album"):
            if key in data and not str(data[key] or "").strip():
                raise ValidationError("Artist and Album are required.")

        row = self._get_row(record_id)
        if not row:
            return False

        for key, value in data.items():
            setattr(row, key, list(value) if isinstance(value, list) else value)

        self._commit(f"update record {record_id}")
        return True

    def set_cover(self, record_id: int, cover_url: str) -> bool:
        """Patch only the artwork of a record.

        Args:
            record_id: The record ID
            cover_url: Image URL or inline data URL

        Returns:
            True if the record was updated, False if it does not exist
        """
        return self.update(record_id, {"cover_url": cover_url})

    def delete(self, record_id: int) -> bool:
        """Delete a record by its ID.

        Deleting an id that does not exist succeeds silently.

        Args:
            record_id: The record ID

        Returns:
            Always True
        """
        row = self._get_row(record_id)
        if row is None:
            logger.debug(f"Record {record_id} not found, nothing to delete")
            return True

        self.session.delete(row)
        self._commit(f"delete record {record_id}")
        logger.debug(f"Deleted record {record_id}")
        return True

    def clear(self) -> int:
        """Remove every record and verify the store is empty.

        Returns:
            Number of records removed

        Raises:
            IntegrityError: If records remain after clearing
        """
        removed = self.count()
        self.session.execute(delete(VinylGenre))
        self.session.execute(delete(Vinyl))
        self._commit("clear records")
        self.session.expunge_all()

        remaining = self.count()
        if remaining > 0:
            logger.error(f"Database clear failed, records remain: {remaining}")
            raise IntegrityError(f"Could not clear the collection: {remaining} records remain.")

        logger.info(f"Cleared {removed} records")
        return removed
