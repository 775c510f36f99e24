"""Customer locations as seen by the map."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fiberplant.errors import NotFoundError, PersistenceError
from fiberplant.models.customer import Customer
from fiberplant.services.common import validate_location

logger = logging.getLogger(__name__)


class CustomerFeed(Protocol):
    """Read access to customer records plus the coordinate write-back."""

    def list_customers_with_coordinates(self) -> list[Customer]: ...
    def list_customers_without_coordinates(self, search: str | None = None) -> list[Customer]: ...
    def set_customer_coordinates(self, customer_id: int, lat: float, lng: float) -> Customer: ...


class SqlAlchemyCustomerFeed:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_customers_with_coordinates(self) -> list[Customer]:
        try:
            return (
                self.db.query(Customer)
                .filter(Customer.latitude.isnot(None))
                .filter(Customer.longitude.isnot(None))
                .order_by(Customer.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load located customers") from exc

    def list_customers_without_coordinates(self, search: str | None = None) -> list[Customer]:
        """Customers still missing a map pin, optionally filtered by a search term.

        The term matches username, full name or address, case-insensitively.
        """
        query = self.db.query(Customer).filter(
            or_(Customer.latitude.is_(None), Customer.longitude.is_(None))
        )
        term = (search or "").strip()
        if term:
            like = f"%{term}%"
            query = query.filter(
                or_(
                    Customer.username.ilike(like),
                    Customer.full_name.ilike(like),
                    Customer.address.ilike(like),
                )
            )
        try:
            return query.order_by(Customer.id.asc()).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load unlocated customers") from exc

    def set_customer_coordinates(self, customer_id: int, lat: float, lng: float) -> Customer:
        lat, lng = validate_location((lat, lng))
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        customer.latitude = lat
        customer.longitude = lng
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to pin customer %s", customer_id)
            raise PersistenceError("Failed to save customer location") from exc
        self.db.refresh(customer)
        logger.info("Pinned customer %s at (%s, %s)", customer_id, lat, lng)
        return customer
