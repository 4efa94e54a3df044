from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from netsim.db.base import Base


class ConnectionRow(Base):
    __tablename__ = "connections"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # No FK to devices: endpoint existence is advisory.
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    target: Mapped[str] = mapped_column(String(64), nullable=False)
    source_interface: Mapped[str] = mapped_column(String(100), nullable=False)
    target_interface: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="connected")
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("status IN ('connected','disconnected')", name="chk_connections_status"),
        CheckConstraint("source <> target", name="chk_connections_no_self_loop"),
        Index("ix_connections_source_target", "source", "target"),
    )
