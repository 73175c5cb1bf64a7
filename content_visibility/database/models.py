"""SQLAlchemy models for content visibility."""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
    true,
)

from content_visibility.models.visibility import ContentKind

from .base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CulturalCuisineModel(Base):
    """Shared cuisine content.

    Owned by the catalog service; only the columns needed for existence
    checks are mapped here.
    """

    __tablename__ = "cultural_cuisines"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class CulturalRecipeModel(Base):
    """Shared recipe content (existence-check columns only)."""

    __tablename__ = "cultural_recipes"

    id = Column(Integer, primary_key=True)
    cuisine_id = Column(Integer, ForeignKey("cultural_cuisines.id"), nullable=False)
    name = Column(Text, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


# Content table per kind
CONTENT_MODELS: dict[ContentKind, type[Base]] = {
    ContentKind.CUISINE: CulturalCuisineModel,
    ContentKind.RECIPE: CulturalRecipeModel,
}


class HiddenContentModel(Base):
    """One row per item a principal has hidden.

    Visible items have no row. ``hidden`` is kept so rows flipped to false by
    older writers still read as visible; unhide always deletes the row.
    """

    __tablename__ = "hidden_content"

    principal_id = Column(Text, primary_key=True)
    content_kind = Column(
        Enum(
            *[kind.value for kind in ContentKind],
            name="content_kind_enum",
        ),
        primary_key=True,
    )
    content_id = Column(BigInteger, primary_key=True)
    hidden = Column(Boolean, nullable=False, default=True, server_default=true())
    hidden_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    __table_args__ = (
        Index(
            "idx_hidden_content_principal_kind_time",
            "principal_id",
            "content_kind",
            "hidden_at",
        ),
    )
