from sqlalchemy import Column, Integer, String, Text, Date
from sqlalchemy.orm import relationship

from app.core.database import Base


class Event(Base):
    __tablename__ = "Events"

    id = Column("event_id", Integer, primary_key=True, index=True)
    event_name = Column(String(255), nullable=False)
    event_type = Column(String(255), nullable=False)
    event_location = Column(String(255), nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    event_description = Column(Text, nullable=False)
    menu_title = Column(String(255), nullable=False)
    menu_image_filename = Column(String(255), nullable=False)

    photos = relationship("Photo", back_populates="event", cascade="all, delete-orphan",
                          passive_deletes=True, order_by="Photo.taken_date.desc()")

    @property
    def year(self) -> int:
        return self.event_date.year

    def __repr__(self):
        return f"<Event(id={self.id}, menu_title={self.menu_title!r}, event_date={self.event_date})>"
