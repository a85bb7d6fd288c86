from sqlalchemy import Column, DateTime, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class Customer(Base):
    """Meal-plan customer. Managed by the customer module; the ledger only reads it."""

    __tablename__ = "customers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
