from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, false, func
from runclub.db import Base


class LeaderboardUser(Base):
    __tablename__ = "leaderboard_users"

    id = Column(String(36), primary_key=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    # Stored lowercased, immutable once set
    username = Column(String(64), nullable=True)

    total_runs = Column(Integer, nullable=False, server_default="0")
    total_miles = Column(Float, nullable=False, server_default="0")

    # False for rows seeded from the admin panel
    is_registered = Column(Boolean, nullable=False, server_default=false())

    # Listing iterates in this order before ranking
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Rank is NOT stored, it is computed when listing

    __table_args__ = (
        Index("ux_leaderboard_users_username", func.lower(username), unique=True),
    )
