"""
Per-region capacity ledger row.

Key design decisions:
- `confirmed_count` is only ever changed by conditional UPDATE statements
  (claim / release), never assigned from a value read earlier
- CHECK constraints make overshoot and negative counts impossible even if
  a caller bypasses the ledger service
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from event_registration.db.base import Base, TimestampMixin


class RegionCapacity(Base, TimestampMixin):
    __tablename__ = "region_capacity"

    region = Column(String(100), primary_key=True)
    confirmed_count = Column(Integer, nullable=False, default=0)
    max_capacity = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("confirmed_count >= 0", name="check_confirmed_count_non_negative"),
        CheckConstraint("max_capacity >= 0", name="check_max_capacity_non_negative"),
        CheckConstraint("confirmed_count <= max_capacity", name="check_confirmed_lte_max"),
    )

    def __repr__(self) -> str:
        return f"<RegionCapacity(region={self.region}, confirmed={self.confirmed_count}/{self.max_capacity})>"
