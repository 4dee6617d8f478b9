from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.user import utcnow


class Photo(Base):
    __tablename__ = "Photos"

    id = Column("photo_id", Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("Events.event_id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    caption = Column(Text, nullable=True)
    taken_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    # Payload is either an inline data URL or a path relative to the upload directory
    file_data = Column(Text, nullable=True)
    file_path = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    event = relationship("Event", back_populates="photos")
