from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from database import Base

# Audit trail of storefront actions (checkout attempts, cancellations, admin edits)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)    # e.g. ORDER_CREATE, ORDER_CANCEL
    resource = Column(String(50), index=True)  # orders, cart, promotions
    status = Column(String(20), index=True)    # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Orders are deletable, so this is a plain reference rather than a foreign key
    order_id = Column(Integer, nullable=True, index=True)

    # JSON container for flexible context data
    meta = Column(JSON, nullable=True)
