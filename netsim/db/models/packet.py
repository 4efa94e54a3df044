from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from netsim.db.base import Base


class PacketRow(Base):
    __tablename__ = "packets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    source: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    destination: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    protocol: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    path: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint("protocol IN ('ICMP','TCP','UDP','ARP','DNS')", name="chk_packets_protocol"),
        CheckConstraint(
            "status IN ('pending','transmitted','received','dropped')",
            name="chk_packets_status",
        ),
    )
