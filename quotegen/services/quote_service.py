"""Quote service: quote numbers, persisted quotes and document context."""

import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quotegen.models import (
    Quote, QuoteFeature, QuoteStatus, Customer, Service, BandwidthOption, Feature,
    LEGACY_SCHEMA_VERSION
)
from quotegen.exceptions import NotFoundError, StoreError, ValidationError
from quotegen.services.pricing_service import aggregate_totals
from quotegen.services.legacy_notes import QuoteMetadata, embed_metadata, parse_notes
from quotegen.services.template_engine import CompanyBranding, FeatureLine, TemplateContext
from quotegen.utils.formatters import format_bandwidth

logger = logging.getLogger(__name__)

LINKAGE_COLUMNS = 'columns'
LINKAGE_NOTES = 'notes'

# Allowed status transitions; anything not listed is terminal
STATUS_TRANSITIONS = {
    QuoteStatus.DRAFT.value: {
        QuoteStatus.SENT.value, QuoteStatus.ACCEPTED.value,
        QuoteStatus.DECLINED.value, QuoteStatus.EXPIRED.value,
    },
    QuoteStatus.SENT.value: {
        QuoteStatus.ACCEPTED.value, QuoteStatus.DECLINED.value, QuoteStatus.EXPIRED.value,
    },
}


@dataclass
class QuoteDraft:
    """Completed wizard state handed to the builder."""
    customer_id: int
    service_id: Optional[int] = None
    bandwidth_option_id: Optional[int] = None
    feature_ids: List[int] = field(default_factory=list)
    contract_term_months: int = 12
    notes: Optional[str] = None


def generate_quote_number(session: Session, today: Optional[date] = None, rng=None,
                          max_attempts: int = 5) -> str:
    """
    Generate a quote number `Q{YY}{MM}-{NNNN}` not used by any stored quote.

    The random suffix is redrawn while it collides with an existing number.

    Raises:
        StoreError: if no free number was found within `max_attempts` draws.
    """
    today = today or date.today()
    rng = rng or random

    for _ in range(max_attempts):
        candidate = f"Q{today:%y%m}-{rng.randint(0, 9999):04d}"
        exists = session.query(Quote.id).filter(Quote.quote_number == candidate).first()
        if not exists:
            return candidate
        logger.warning(f"[QUOTE] Quote number collision on {candidate}, redrawing")

    raise StoreError(f'Could not allocate a unique quote number after {max_attempts} attempts')


def _load_selection(session: Session, draft: QuoteDraft):
    """Resolve the draft's catalog references."""
    service = None
    bandwidth = None

    if draft.service_id is not None:
        service = session.get(Service, draft.service_id)
        if not service:
            raise NotFoundError(f'Service {draft.service_id} not found')

    if draft.bandwidth_option_id is not None:
        bandwidth = session.get(BandwidthOption, draft.bandwidth_option_id)
        if not bandwidth:
            raise NotFoundError(f'Bandwidth option {draft.bandwidth_option_id} not found')
        if service and bandwidth.service_id != service.id:
            raise ValidationError('Bandwidth option does not belong to the selected service',
                                  errors={'bandwidth_option_id': ['Not offered for this service']})

    features = []
    feature_ids = list(dict.fromkeys(draft.feature_ids or []))
    if feature_ids:
        found = {f.id: f for f in session.query(Feature).filter(Feature.id.in_(feature_ids)).all()}
        missing = [fid for fid in feature_ids if fid not in found]
        if missing:
            raise NotFoundError(f'Features not found: {missing}')
        features = [found[fid] for fid in feature_ids]

    return service, bandwidth, features


def create_quote(
    session: Session,
    draft: QuoteDraft,
    sales_rep_id: Optional[int] = None,
    valid_days: int = 30,
    linkage_mode: str = LINKAGE_COLUMNS,
    max_attempts: int = 5,
    today: Optional[date] = None
) -> Quote:
    """
    Build and persist a quote from a completed draft.

    Totals are computed once here and never recomputed from the catalog.
    A missing service or bandwidth tier yields zero-valued service fields.

    Args:
        session: Database session
        draft: Wizard selection
        sales_rep_id: User creating the quote
        valid_days: Days until the quote expires
        linkage_mode: 'columns' writes linkage columns and feature rows,
            'notes' embeds the selection in the notes field
        max_attempts: Quote number draws before giving up
        today: Quote date (defaults to today)

    Returns:
        The persisted Quote

    Raises:
        NotFoundError: if the customer or a catalog reference does not exist
        ValidationError: if the selection is inconsistent
        StoreError: if the write fails
    """
    if linkage_mode not in (LINKAGE_COLUMNS, LINKAGE_NOTES):
        raise ValidationError(f'Unknown linkage mode: {linkage_mode}')

    customer = session.get(Customer, draft.customer_id) if draft.customer_id else None
    if not customer:
        raise NotFoundError(f'Customer {draft.customer_id} not found')

    service, bandwidth, features = _load_selection(session, draft)
    if not service or not bandwidth:
        logger.warning("[QUOTE] Building quote without a complete service selection")

    totals = aggregate_totals(
        bandwidth_monthly_price=bandwidth.monthly_price if bandwidth else None,
        setup_fee=service.setup_fee if service else None,
        features=features
    )

    quote_date = today or date.today()
    notes = (draft.notes or '').strip() or None

    try:
        quote = Quote(
            quote_number=generate_quote_number(session, today=quote_date, max_attempts=max_attempts),
            customer_id=customer.id,
            sales_rep_id=sales_rep_id,
            status=QuoteStatus.DRAFT.value,
            total_monthly_cost=totals.total_monthly,
            total_one_time_cost=totals.total_one_time,
            contract_term_months=draft.contract_term_months or 12,
            quote_date=quote_date,
            expiration_date=quote_date + timedelta(days=valid_days),
        )

        if linkage_mode == LINKAGE_COLUMNS:
            quote.notes = notes
            quote.service_id = service.id if service else None
            quote.bandwidth_option_id = bandwidth.id if bandwidth else None
            quote.service_name_snapshot = service.name if service else None
            quote.service_setup_fee_snapshot = service.setup_fee if service else None
            quote.bandwidth_label_snapshot = bandwidth.label if bandwidth else None
            quote.bandwidth_price_snapshot = bandwidth.monthly_price if bandwidth else None
            for feature in features:
                quote.features.append(QuoteFeature(
                    feature_id=feature.id,
                    name_snapshot=feature.name,
                    monthly_price=feature.monthly_price,
                    one_time_fee=feature.one_time_fee,
                ))
        else:
            metadata = QuoteMetadata(
                service_id=service.id if service else None,
                service_name=service.name if service else None,
                bandwidth_id=bandwidth.id if bandwidth else None,
                bandwidth_value=format_bandwidth(bandwidth.bandwidth, None) if bandwidth else None,
                bandwidth_unit=bandwidth.unit if bandwidth else None,
                features=[{'id': f.id, 'name': f.name} for f in features],
            )
            quote.notes = embed_metadata(metadata, notes)
            quote.schema_version = LEGACY_SCHEMA_VERSION

        session.add(quote)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[QUOTE] Failed to save quote for customer {customer.id}: {e}")
        raise StoreError('Failed to save quote') from e

    logger.info(
        f"[QUOTE] Created {quote.quote_number} customer={customer.id} "
        f"monthly={totals.total_monthly} one_time={totals.total_one_time}"
    )
    return quote


def get_quote(session: Session, quote_id: int) -> Quote:
    """Get a quote by id or raise NotFoundError."""
    quote = session.get(Quote, quote_id)
    if not quote:
        raise NotFoundError(f'Quote {quote_id} not found')
    return quote


def list_quotes(session: Session, status: Optional[str] = None, search: Optional[str] = None) -> List[Quote]:
    """List quotes, newest first, optionally filtered by status and text."""
    query = session.query(Quote).join(Customer, Quote.customer_id == Customer.id)

    if status:
        query = query.filter(Quote.status == status)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Quote.quote_number.ilike(term),
            Customer.company_name.ilike(term),
            Customer.contact_name.ilike(term),
        ))

    return query.order_by(Quote.quote_date.desc(), Quote.id.desc()).all()


def update_quote_status(session: Session, quote_id: int, new_status: str) -> Quote:
    """
    Change the status of a quote.

    Status is the only field of a quote that changes after creation.

    Raises:
        NotFoundError: if the quote does not exist
        ValidationError: if the status is unknown or the transition is not allowed
    """
    valid = {s.value for s in QuoteStatus}
    if new_status not in valid:
        raise ValidationError(f'Unknown status: {new_status}',
                              errors={'status': [f'Must be one of {sorted(valid)}']})

    quote = get_quote(session, quote_id)
    if new_status not in STATUS_TRANSITIONS.get(quote.status, set()):
        raise ValidationError(f'Cannot change quote from {quote.status} to {new_status}')

    old_status = quote.status
    try:
        quote.status = new_status
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError('Failed to update quote status') from e

    logger.info(f"[QUOTE] {quote.quote_number} status {old_status} -> {new_status}")
    return quote


def build_document_context(
    session: Session,
    quote: Quote,
    branding: Optional[CompanyBranding] = None,
    currency_code: str = 'MUR'
) -> TemplateContext:
    """
    Bind a stored quote to the template vocabulary.

    Service, bandwidth and features come from the linkage columns and their
    snapshots. Quotes still carrying an embedded metadata block are read
    through it. A quote with neither renders empty service fields.
    """
    metadata, free_text = parse_notes(quote.notes)
    customer = quote.customer

    context = TemplateContext(
        quote_number=quote.quote_number,
        quote_date=quote.quote_date,
        quote_status=quote.status,
        expiration_date=quote.expiration_date,
        total_monthly=quote.total_monthly_cost,
        total_one_time=quote.total_one_time_cost,
        contract_term=quote.contract_term_months,
        notes=free_text or None,
        customer_name=customer.company_name if customer else None,
        contact_name=customer.contact_name if customer else None,
        customer_email=customer.email if customer else None,
        customer_phone=customer.phone if customer else None,
        customer_address=customer.address if customer else None,
        customer_city=customer.city if customer else None,
        customer_country=customer.country if customer else None,
        branding=branding or CompanyBranding(),
        currency_code=currency_code,
    )

    if quote.service_id or quote.service_name_snapshot or quote.features:
        service = quote.service
        bandwidth = quote.bandwidth_option
        context.service_name = quote.service_name_snapshot or (service.name if service else None)
        context.service_setup_fee = (
            quote.service_setup_fee_snapshot if quote.service_setup_fee_snapshot is not None
            else (service.setup_fee if service else None)
        )
        context.bandwidth = quote.bandwidth_label_snapshot or (bandwidth.label if bandwidth else None)
        context.bandwidth_price = (
            quote.bandwidth_price_snapshot if quote.bandwidth_price_snapshot is not None
            else (bandwidth.monthly_price if bandwidth else None)
        )
        context.features = [
            FeatureLine(name=f.name_snapshot, monthly_price=f.monthly_price, one_time_fee=f.one_time_fee)
            for f in quote.features
        ]
    elif metadata is not None:
        service = session.get(Service, metadata.service_id) if metadata.service_id else None
        bandwidth = session.get(BandwidthOption, metadata.bandwidth_id) if metadata.bandwidth_id else None
        context.service_name = metadata.service_name or (service.name if service else None)
        context.service_setup_fee = service.setup_fee if service else None
        if metadata.bandwidth_value:
            context.bandwidth = f"{metadata.bandwidth_value} {metadata.bandwidth_unit or ''}".strip()
        elif bandwidth:
            context.bandwidth = bandwidth.label
        context.bandwidth_price = bandwidth.monthly_price if bandwidth else None

        catalog = {}
        if metadata.feature_ids:
            catalog = {
                f.id: f for f in
                session.query(Feature).filter(Feature.id.in_(metadata.feature_ids)).all()
            }
        for entry in metadata.features:
            feature = catalog.get(entry.get('id'))
            context.features.append(FeatureLine(
                name=entry.get('name') or (feature.name if feature else ''),
                monthly_price=feature.monthly_price if feature else None,
                one_time_fee=feature.one_time_fee if feature else None,
            ))
    else:
        logger.info(f"[QUOTE] {quote.quote_number} has no service linkage, rendering empty service fields")

    return context
