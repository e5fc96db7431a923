"""Database models for the Vinyl Vault record store."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from vinylvault.core.data.database import Base
from vinylvault.core.data.types import UNKNOWN_COUNTRY, VinylRecord


class UTCDateTime(TypeDecorator):
    """DateTime column that always hands back timezone-aware UTC values.

    SQLite has no timezone support, so values are stored as naive UTC and
    re-tagged on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Vinyl(Base):
    """A physical record in the collection."""

    __tablename__ = "vinyl_records"
    # Never hand out the id of a deleted record again
    __table_args__ = ({"sqlite_autoincrement": True},)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    album: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    genre_entries: Mapped[list["VinylGenre"]] = relationship(
        "VinylGenre",
        back_populates="vinyl",
        cascade="all, delete-orphan",
        order_by="VinylGenre.position",
        collection_class=ordering_list("position"),
    )
    # Genres in display order, as plain strings
    genre: AssociationProxy[list[str]] = association_proxy(
        "genre_entries", "name", creator=lambda name: VinylGenre(name=name)
    )

    collection: Mapped[str] = mapped_column(String(255), default="")
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    country: Mapped[str] = mapped_column(String(100), default=UNKNOWN_COUNTRY)
    label: Mapped[list[str]] = mapped_column(JSON, default=list)
    cat_number: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Goldmine grades (M, NM, VG+, ...)
    condition_sleeve: Mapped[str] = mapped_column(String(8), default="")
    condition_media: Mapped[str] = mapped_column(String(8), default="")

    # 0 means unrated for both scores
    sound_quality: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[int] = mapped_column(Integer, default=0, index=True)

    best_tracks: Mapped[list[str]] = mapped_column(JSON, default=list)
    comments: Mapped[str] = mapped_column(Text, default="")
    discogs_link: Mapped[str] = mapped_column(String(1024), default="")
    to_be_sold: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # External image URL or inline data URL
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    dominant_color: Mapped[str | None] = mapped_column(String(32), nullable=True)

    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    def to_record(self) -> VinylRecord:
        """Build a detached snapshot of this row.

        Returns:
            VinylRecord: Copy of the row's values
        """
        return VinylRecord(
            id=self.id,
            artist=self.artist,
            album=self.album,
            genre=list(self.genre),
            collection=self.collection or "",
            release_year=self.release_year,
            country=self.country or UNKNOWN_COUNTRY,
            label=list(self.label or []),
            cat_number=list(self.cat_number or []),
            condition_sleeve=self.condition_sleeve or "",
            condition_media=self.condition_media or "",
            sound_quality=self.sound_quality or 0,
            rating=self.rating or 0,
            best_tracks=list(self.best_tracks or []),
            comments=self.comments or "",
            discogs_link=self.discogs_link or "",
            to_be_sold=bool(self.to_be_sold),
            cover_url=self.cover_url or None,
            dominant_color=self.dominant_color,
            added_at=self.added_at,
        )

    @classmethod
    def from_record(cls, record: VinylRecord) -> "Vinyl":
        """Build a new, unsaved row from a snapshot. The snapshot's id is ignored.

        Args:
            record: Record values

        Returns:
            Vinyl: Transient row ready to be added to a session
        """
        values: dict[str, Any] = record.field_values(include_id=False)
        return cls(**values)

    def __repr__(self) -> str:
        """String representation of Vinyl.

        Returns:
            str: String representation
        """
        return f"<Vinyl {self.id}: {self.artist} - {self.album}>"


class VinylGenre(Base):
    """One genre entry of a record; gives genres a per-entry index."""

    __tablename__ = "vinyl_genres"

    id: Mapped[int] = mapped_column(primary_key=True)
    vinyl_id: Mapped[int] = mapped_column(
        ForeignKey("vinyl_records.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    vinyl: Mapped[Vinyl] = relationship("Vinyl", back_populates="genre_entries")

    def __repr__(self) -> str:
        return f"<VinylGenre {self.name} ({self.vinyl_id})>"
