from app.models.event import Event
from app.models.photo import Photo
from app.models.session import Session
from app.models.user import User

__all__ = ["Event", "Photo", "Session", "User"]
