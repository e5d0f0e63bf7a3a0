from sqlalchemy import Column, String, DateTime, JSON, Text, Numeric, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime
import uuid

Base = declarative_base()


def _new_order_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_order_id)
    order_number = Column(String(50), unique=True, nullable=False)

    # Lifecycle
    status = Column(String(50), default="PENDING")
    payment_status = Column(String(50), default="PENDING")
    fulfillment_status = Column(String(50), default="UNFULFILLED")

    total_amount = Column(Numeric(12, 2), default=0)

    # Address blobs carry the customer name/email
    shipping_address = Column(JSON)
    billing_address = Column(JSON)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_orders_updated_at", "updated_at"),
    )
