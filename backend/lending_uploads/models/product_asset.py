from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lending_uploads.core.artifacts import ArtifactKind
from lending_uploads.db.base import Base


class ProductAsset(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[ArtifactKind] = mapped_column(
        SqlEnum(ArtifactKind, name="artifact_kind"),
        nullable=False,
    )
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    product: Mapped["Product"] = relationship("Product", back_populates="assets")


Index(
    "ix_product_asset_product_kind_version",
    ProductAsset.product_id,
    ProductAsset.kind,
    ProductAsset.version.desc(),
)
