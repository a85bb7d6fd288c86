"""Customer repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.models.customer import Customer
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.schemas.customer import CustomerCreate


class CustomerRepository:
    """Repository for Customer model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, customer_id: UUID, *, lifecycle: LifecycleState | None) -> Customer | None:
        query = self.db.query(Customer).filter(Customer.id == customer_id)
        if lifecycle is not None:
            query = query.filter(Customer.lifecycle_state == lifecycle.value)
        return query.first()

    def create(self, data: CustomerCreate) -> Customer:
        customer = Customer(name=data.name, email=data.email, phone=data.phone)
        self.db.add(customer)
        self.db.flush()
        return customer
