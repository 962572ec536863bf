"""
Registration model: one row per registrant.

Key design decisions:
- Unique functional index on lower(email) enforces one registration per
  person at the storage layer, case-insensitively, so racing submissions
  with the same address cannot both land
- Composite index on (region, status) backs the per-region roster counts
- Index on created_at for the newest-first roster listing
"""

from sqlalchemy import Column, Integer, String, CheckConstraint, Index, func

from event_registration.db.base import Base, TimestampMixin

STATUS_CONFIRMED = "confirmed"
STATUS_WAITING_LIST = "waiting_list"
REGISTRATION_STATUSES = (STATUS_CONFIRMED, STATUS_WAITING_LIST)

EMAIL_UNIQUE_INDEX = "uq_registrations_email_lower"


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    program = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    region = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False)

    __table_args__ = (
        CheckConstraint("status IN ('confirmed', 'waiting_list')", name="check_registration_status"),
        Index("ix_registrations_region_status", "region", "status"),
        Index("ix_registrations_created_at", "created_at"),
    )

    @property
    def is_confirmed(self) -> bool:
        return self.status == STATUS_CONFIRMED

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, email={self.email}, region={self.region}, status={self.status})>"


Index(EMAIL_UNIQUE_INDEX, func.lower(Registration.email), unique=True)
