"""Customer service: creation and lookup of quoted companies."""
import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from quotegen.models import Customer
from quotegen.exceptions import NotFoundError, StoreError

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ('company_name', 'contact_name', 'email', 'phone', 'address', 'city', 'country', 'industry')


def create_customer(session, data: Dict) -> Customer:
    """
    Create a customer from validated form data.

    Customers are created once per quote flow and never deduplicated,
    so the same company may appear several times.

    Args:
        session: SQLAlchemy session
        data: Validated customer fields

    Returns:
        The persisted Customer

    Raises:
        StoreError: If the insert fails
    """
    values = {}
    for field in CUSTOMER_FIELDS:
        value = data.get(field)
        if isinstance(value, str):
            value = value.strip() or None
        values[field] = value
    values['country'] = values.get('country') or 'Mauritius'

    try:
        customer = Customer(**values)
        session.add(customer)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[CUSTOMER] Failed to create customer {values.get('company_name')}: {e}")
        raise StoreError('Failed to save customer') from e

    logger.info(f"[CUSTOMER] Created customer {customer.id} ({customer.company_name})")
    return customer


def get_customer(session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f'Customer {customer_id} not found')
    return customer


def search_customers(session, search: Optional[str] = None, limit: int = 100) -> List[Customer]:
    """Customers ordered by company name, optionally filtered by name or email."""
    query = session.query(Customer)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.company_name.ilike(term),
            Customer.contact_name.ilike(term),
            Customer.email.ilike(term),
        ))
    return query.order_by(Customer.company_name, Customer.id).limit(limit).all()
