from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from netsim.db.base import Base


class DeviceRow(Base):
    __tablename__ = "devices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    position_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    position_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="offline")

    # Wire-shaped (camelCase) JSON, stored as the client sees it.
    interfaces: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    config: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Preserves insertion order across reloads (path resolution depends on it).
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("type IN ('router','switch','pc','server')", name="chk_devices_type"),
        CheckConstraint("status IN ('online','offline','error')", name="chk_devices_status"),
    )
