"""
Codec for quote metadata embedded in the notes field.

Stores that predate the explicit linkage columns keep the selected service,
bandwidth tier and features as a JSON block at the start of `quote.notes`:

    [[quote-meta]]{"service": {...}, "bandwidth": {...}, "features": [...]}[[/quote-meta]]
    free text typed by the sales rep...

Readers always run `parse_notes` before showing notes as free text.
`migrate_legacy_quote` moves the block into the linkage columns.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from quotegen.models import (
    Quote, QuoteFeature, Service, BandwidthOption, Feature,
    LEGACY_SCHEMA_VERSION, CURRENT_SCHEMA_VERSION
)

logger = logging.getLogger(__name__)

META_START = '[[quote-meta]]'
META_END = '[[/quote-meta]]'


@dataclass
class QuoteMetadata:
    """Service/bandwidth/feature selection recovered from a quote."""
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    bandwidth_id: Optional[int] = None
    bandwidth_value: Optional[str] = None
    bandwidth_unit: Optional[str] = None
    features: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'service': {'id': self.service_id, 'name': self.service_name},
            'bandwidth': {'id': self.bandwidth_id, 'value': self.bandwidth_value, 'unit': self.bandwidth_unit},
            'features': [{'id': f.get('id'), 'name': f.get('name')} for f in self.features],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuoteMetadata':
        service = data.get('service') or {}
        bandwidth = data.get('bandwidth') or {}
        features = [f for f in (data.get('features') or []) if isinstance(f, dict)]
        return cls(
            service_id=_as_int(service.get('id')),
            service_name=service.get('name'),
            bandwidth_id=_as_int(bandwidth.get('id')),
            bandwidth_value=None if bandwidth.get('value') is None else str(bandwidth.get('value')),
            bandwidth_unit=bandwidth.get('unit'),
            features=[{'id': _as_int(f.get('id')), 'name': f.get('name')} for f in features],
        )

    @property
    def feature_ids(self) -> List[int]:
        return [f['id'] for f in self.features if f.get('id') is not None]


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def embed_metadata(metadata: QuoteMetadata, notes: Optional[str]) -> str:
    """Prefix free-text notes with the serialized metadata block."""
    block = json.dumps(metadata.to_dict(), separators=(',', ':'), sort_keys=True)
    text = notes or ''
    return f"{META_START}{block}{META_END}{text}"


def parse_notes(notes: Optional[str]) -> Tuple[Optional[QuoteMetadata], str]:
    """
    Split notes into (metadata, free text).

    A missing, unterminated or malformed block leaves the notes untouched
    and returns no metadata.
    """
    if not notes or not notes.startswith(META_START):
        return None, notes or ''

    end = notes.find(META_END, len(META_START))
    if end == -1:
        return None, notes

    raw = notes[len(META_START):end]
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[QUOTE] Malformed metadata block in notes, treating as free text")
        return None, notes

    if not isinstance(data, dict):
        return None, notes

    return QuoteMetadata.from_dict(data), notes[end + len(META_END):]


def migrate_legacy_quote(session, quote: Quote) -> bool:
    """
    Move embedded metadata of a legacy quote into the linkage columns.

    Legacy blocks carry no prices, so feature rows take the catalog prices
    at migration time (what the document showed before). Quote totals are
    left untouched.

    Returns:
        True if the quote was migrated, False if there was nothing to do.
    """
    if quote.schema_version != LEGACY_SCHEMA_VERSION:
        return False

    metadata, free_text = parse_notes(quote.notes)
    if metadata is None:
        quote.schema_version = CURRENT_SCHEMA_VERSION
        return True

    service = session.get(Service, metadata.service_id) if metadata.service_id else None
    bandwidth = session.get(BandwidthOption, metadata.bandwidth_id) if metadata.bandwidth_id else None

    quote.service_id = service.id if service else None
    quote.bandwidth_option_id = bandwidth.id if bandwidth else None
    quote.service_name_snapshot = metadata.service_name or (service.name if service else None)
    if metadata.bandwidth_value:
        quote.bandwidth_label_snapshot = f"{metadata.bandwidth_value} {metadata.bandwidth_unit or ''}".strip()
    elif bandwidth:
        quote.bandwidth_label_snapshot = bandwidth.label
    if service:
        quote.service_setup_fee_snapshot = service.setup_fee
    if bandwidth:
        quote.bandwidth_price_snapshot = bandwidth.monthly_price

    for entry in metadata.features:
        feature = session.get(Feature, entry['id']) if entry.get('id') else None
        quote.features.append(QuoteFeature(
            feature_id=feature.id if feature else None,
            name_snapshot=entry.get('name') or (feature.name if feature else 'Feature'),
            monthly_price=feature.monthly_price if feature else 0,
            one_time_fee=feature.one_time_fee if feature else 0,
        ))

    quote.notes = free_text or None
    quote.schema_version = CURRENT_SCHEMA_VERSION

    logger.info(f"[QUOTE] Migrated legacy quote {quote.quote_number} (service={quote.service_id})")
    return True
