from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import relationship
from runclub.db import Base


class RSVP(Base):
    __tablename__ = "rsvps"

    id = Column(String(36), primary_key=True)
    run_id = Column(
        String(36), ForeignKey("runs.id", ondelete="CASCADE"), nullable=False, index=True
    )

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    # Lowercased; NULL for anonymous RSVPs which are never merged
    username = Column(String(64), nullable=True)
    status = Column(String(3), nullable=False)  # yes / no
    timestamp = Column(DateTime(timezone=True), nullable=False)

    # Keeps list order stable across reloads
    position = Column(Integer, nullable=False, default=0)

    run = relationship("Run", back_populates="rsvps")

    __table_args__ = (
        # at most one live RSVP per run + username
        Index(
            "ux_rsvps_run_username",
            run_id,
            func.lower(username),
            unique=True,
            postgresql_where=text("username IS NOT NULL"),
            sqlite_where=text("username IS NOT NULL"),
        ),
    )
