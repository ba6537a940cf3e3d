"""Business domain service."""

import logging
from decimal import Decimal
from typing import Optional

from katalis.database.base import Database
from katalis.domain.entities import Business as BusinessEntity
from katalis.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    business_not_found,
    duplicate_business_name,
)

logger = logging.getLogger(__name__)


class BusinessService:
    """Service for managing businesses."""

    def __init__(self, db: Database):
        """Initialize business service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_business(self, name: str, capital_investment: Decimal = Decimal("0")) -> int:
        """Create a new business.

        Args:
            name: Business name
            capital_investment: Owner's capital, the opening balance of reports

        Returns:
            Business ID

        Raises:
            ValidationError: If the name is blank or the capital is negative
            ConflictError: If a business with this name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Business name cannot be empty")
        if capital_investment < 0:
            raise ValidationError("Capital investment cannot be negative")
        if self.db.get_business_by_name(name) is not None:
            raise ConflictError(duplicate_business_name(name))

        business_id = self.db.create_business(name=name, capital_investment=capital_investment)
        logger.info("Created business %s (%s)", business_id, name)
        return business_id

    def get_business(self, business_id: int) -> Optional[BusinessEntity]:
        return self.db.get_business(business_id)

    def list_businesses(self) -> list[BusinessEntity]:
        return self.db.list_businesses()

    def resolve_business(self, business: str) -> BusinessEntity:
        """Find a business by name, falling back to its ID.

        Args:
            business: Business name or numeric ID

        Returns:
            Business entity

        Raises:
            NotFoundError: If no business matches
        """
        found = self.db.get_business_by_name(business)
        if found is None and business.isdigit():
            found = self.db.get_business(int(business))
        if found is None:
            raise NotFoundError(business_not_found(business))
        return found
