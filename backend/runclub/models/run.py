from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from runclub.db import Base

class Run(Base):
    __tablename__ = "runs"

    # UUID4 string
    id = Column(String(36), primary_key=True)

    # Exact UTC moment the run starts
    instant = Column(DateTime(timezone=True), nullable=False, index=True)

    # 'HH:MM' as the organizer entered it (reference zone, 24h)
    display_time = Column(String(5), nullable=False)

    location = Column(String, nullable=False)
    pace = Column(String(32), nullable=False)
    description = Column(Text, nullable=False, server_default="")

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    rsvps = relationship(
        "RSVP",
        back_populates="run",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RSVP.position",
    )

    # The zone-local calendar date is NOT stored, it is derived from instant
