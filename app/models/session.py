from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import backref, relationship

from app.core.database import Base
from app.models.user import utcnow


class Session(Base):
    __tablename__ = "Sessions"

    id = Column("session_id", String(128), primary_key=True)
    user_id = Column(Integer, ForeignKey("Users.user_id", ondelete="CASCADE"), nullable=True, index=True)
    expires = Column(DateTime(timezone=True), nullable=False)
    data = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", backref=backref("sessions", cascade="all, delete-orphan", passive_deletes=True))
