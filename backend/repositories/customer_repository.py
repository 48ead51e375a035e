"""
Customer repository for customer-specific data access operations.
"""

import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.value_objects import ValidationFailure
from exceptions import ValidationError
from models import Customer
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository[Customer]):
    """Repository for Customer model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Customer)

    def get_by_email(self, email: str) -> Optional[Customer]:
        return self.db.query(self.model).filter(self.model.email == email.lower()).first()

    def create(self, name: str, email: str, phone: Optional[str] = None) -> Customer:
        """
        Create and commit a customer.

        Raises:
            ValidationError: If the email address is already registered
        """
        customer = Customer(name=name, email=email.lower(), phone=phone)
        try:
            self.add(customer)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Rejected duplicate customer email: {email}")
            raise ValidationError(
                "Customer already exists",
                failures=[ValidationFailure("email", "A customer with this email already exists")],
            )
        return customer
