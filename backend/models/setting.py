# backend/models/setting.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from database import Base

# Key/value store maintained by the admin settings screen.
# Values are kept as text; readers such as services.shipping parse them.
class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, nullable=False, unique=True, index=True)
    value = Column(Text, nullable=True)
    group = Column(String, nullable=False, default="general", index=True)
    type = Column(String, nullable=False, default="string")
    description = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
