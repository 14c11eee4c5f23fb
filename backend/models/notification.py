from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, func
from database import Base

# Admin notification feed entry (new order, cancelled order, ...)
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)

    # Free-form event payload
    data = Column(JSON, nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
