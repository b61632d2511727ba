"""
Template substitution engine for quote documents.

Templates are HTML strings with `{{token}}` placeholders from a fixed
vocabulary. Every declared token has a fallback value, so a quote with
missing data (no linked service, no phone number...) renders blanks rather
than raw syntax. Tokens outside the vocabulary pass through untouched unless
strict mode is requested.

Template markup itself is trusted (authored by administrators) and is not
sanitized; only the data values merged into it are HTML-escaped.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Set

from markupsafe import Markup, escape

from quotegen.exceptions import TemplateRenderError
from quotegen.utils.formatters import format_currency, format_date, nl2br

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
DEFAULT_PRIMARY_COLOR = '#3b82f6'


@dataclass(frozen=True)
class Placeholder:
    """A recognized template token and the value used when data is missing."""
    name: str
    group: str
    fallback: str = ''


PLACEHOLDERS: Dict[str, Placeholder] = {p.name: p for p in (
    # Quote
    Placeholder('quoteNumber', 'quote'),
    Placeholder('quoteDate', 'quote'),
    Placeholder('quoteStatus', 'quote'),
    Placeholder('expirationDate', 'quote'),
    Placeholder('totalMonthly', 'quote', '0.00'),
    Placeholder('totalOneTime', 'quote', '0.00'),
    Placeholder('contractTerm', 'quote'),
    Placeholder('notes', 'quote'),
    # Customer
    Placeholder('customerName', 'customer'),
    Placeholder('contactName', 'customer'),
    Placeholder('customerEmail', 'customer'),
    Placeholder('customerPhone', 'customer'),
    Placeholder('customerAddress', 'customer'),
    Placeholder('customerCity', 'customer'),
    Placeholder('customerCountry', 'customer'),
    # Service / bandwidth
    Placeholder('serviceName', 'service'),
    Placeholder('serviceSetupFee', 'service', '0.00'),
    Placeholder('bandwidth', 'service'),
    Placeholder('bandwidthPrice', 'service', '0.00'),
    Placeholder('featuresRows', 'service'),
    # Company branding
    Placeholder('companyLogo', 'company'),
    Placeholder('companyName', 'company'),
    Placeholder('companyAddress', 'company'),
    Placeholder('companyContact', 'company'),
    Placeholder('companyEmail', 'company'),
    Placeholder('primaryColor', 'company', DEFAULT_PRIMARY_COLOR),
)}


@dataclass
class CompanyBranding:
    """Company identity merged into every rendered document."""
    company_logo: str = ''
    company_name: str = ''
    company_address: str = ''
    company_contact: str = ''
    company_email: str = ''
    primary_color: str = DEFAULT_PRIMARY_COLOR

    def to_dict(self) -> Dict[str, str]:
        return {
            'company_logo': self.company_logo,
            'company_name': self.company_name,
            'company_address': self.company_address,
            'company_contact': self.company_contact,
            'company_email': self.company_email,
            'primary_color': self.primary_color,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict], defaults: Optional['CompanyBranding'] = None) -> 'CompanyBranding':
        """Build branding from stored data, falling back to `defaults` per field."""
        base = (defaults or cls()).to_dict()
        for key, value in (data or {}).items():
            if key in base and value:
                base[key] = str(value)
        return cls(**base)


@dataclass
class FeatureLine:
    """One selected add-on as shown on the document."""
    name: str
    monthly_price: Decimal = Decimal('0.00')
    one_time_fee: Decimal = Decimal('0.00')


@dataclass
class TemplateContext:
    """
    Typed data bound into a template.

    Optional values left as None render with the placeholder's fallback.
    """
    quote_number: Optional[str] = None
    quote_date: Optional[date] = None
    quote_status: Optional[str] = None
    expiration_date: Optional[date] = None
    total_monthly: Optional[Decimal] = None
    total_one_time: Optional[Decimal] = None
    contract_term: Optional[int] = None
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    contact_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_country: Optional[str] = None
    service_name: Optional[str] = None
    service_setup_fee: Optional[Decimal] = None
    bandwidth: Optional[str] = None
    bandwidth_price: Optional[Decimal] = None
    features: List[FeatureLine] = field(default_factory=list)
    branding: CompanyBranding = field(default_factory=CompanyBranding)
    currency_code: str = 'MUR'

    def to_values(self) -> Dict[str, str]:
        """Resolve every declared placeholder to its final markup."""
        raw = {
            'quoteNumber': _text(self.quote_number),
            'quoteDate': format_date(self.quote_date) or None,
            'quoteStatus': _text(self.quote_status),
            'expirationDate': format_date(self.expiration_date) or None,
            'totalMonthly': _money(self.total_monthly),
            'totalOneTime': _money(self.total_one_time),
            'contractTerm': None if self.contract_term is None else str(self.contract_term),
            'notes': _text(self.notes),
            'customerName': _text(self.customer_name),
            'contactName': _text(self.contact_name),
            'customerEmail': _text(self.customer_email),
            'customerPhone': _text(self.customer_phone),
            'customerAddress': nl2br(self.customer_address) or None,
            'customerCity': _text(self.customer_city),
            'customerCountry': _text(self.customer_country),
            'serviceName': _text(self.service_name),
            'serviceSetupFee': _money(self.service_setup_fee),
            'bandwidth': _text(self.bandwidth),
            'bandwidthPrice': _money(self.bandwidth_price),
            'featuresRows': render_feature_rows(self.features, self.currency_code),
            'companyLogo': _text(self.branding.company_logo),
            'companyName': _text(self.branding.company_name),
            'companyAddress': nl2br(self.branding.company_address) or None,
            'companyContact': _text(self.branding.company_contact),
            'companyEmail': _text(self.branding.company_email),
            'primaryColor': _text(self.branding.primary_color),
        }
        return {
            name: str(raw[name]) if raw.get(name) is not None else placeholder.fallback
            for name, placeholder in PLACEHOLDERS.items()
        }


def _text(value) -> Optional[Markup]:
    if value is None or value == '':
        return None
    return escape(str(value))


def _money(value) -> Optional[str]:
    if value is None:
        return None
    return format_currency(value)


def render_feature_rows(features: List[FeatureLine], currency_code: str = 'MUR') -> str:
    """Expand selected features into table rows (empty string for none)."""
    rows = []
    for feature in features:
        rows.append(
            Markup(
                '<tr class="feature-row">'
                '<td>{name}</td>'
                '<td class="text-right">{currency} {one_time}</td>'
                '<td class="text-right">{currency} {monthly}</td>'
                '</tr>'
            ).format(
                name=feature.name or '',
                currency=currency_code,
                one_time=format_currency(feature.one_time_fee),
                monthly=format_currency(feature.monthly_price),
            )
        )
    return '\n'.join(rows)


def find_placeholders(template_html: str) -> Set[str]:
    """All token names used in a template."""
    return set(PLACEHOLDER_PATTERN.findall(template_html or ''))


def find_unknown_placeholders(template_html: str) -> Set[str]:
    """Token names used in a template that are not part of the vocabulary."""
    return {name for name in find_placeholders(template_html) if name not in PLACEHOLDERS}


def render_document(template_html: str, context: TemplateContext, strict: bool = False) -> str:
    """
    Substitute every recognized placeholder in one pass.

    Args:
        template_html: Template markup
        context: Bound document data
        strict: Raise instead of passing unknown tokens through

    Returns:
        Resolved HTML document

    Raises:
        TemplateRenderError: strict mode and the template uses unknown tokens
    """
    unknown = find_unknown_placeholders(template_html)
    if unknown:
        if strict:
            raise TemplateRenderError(
                f"Template uses unknown placeholders: {', '.join(sorted(unknown))}",
                unknown_tokens=unknown
            )
        logger.debug(f"[TEMPLATE] Leaving unknown placeholders as-is: {sorted(unknown)}")

    values = context.to_values()

    def _replace(match):
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template_html)
