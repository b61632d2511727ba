"""
Quotes blueprint: creation wizard, quote list/detail, status and documents.

The wizard keeps its state in the signed session cookie (like a cart) until
`/quotes/wizard/generate` persists the quote and clears it.
"""
from io import BytesIO
from typing import Optional, Tuple

from flask import Blueprint, Response, current_app, g, jsonify, request, send_file, session

from quotegen.database import get_session
from quotegen.models import Service, BandwidthOption, Feature, QuoteStatus
from quotegen.forms.quote_forms import (
    CustomerForm, ServiceSelectionForm, FeatureSelectionForm, QuoteStatusForm, QuoteEmailForm
)
from quotegen.middleware import require_login
from quotegen.services import customer_service, quote_service
from quotegen.services.quote_service import QuoteDraft
from quotegen.services.pricing_service import aggregate_totals
from quotegen.services.settings_store import SettingsStore, branding_defaults_from_config, inline_static_logo
from quotegen.services.template_engine import render_document
from quotegen.services.export_service import DocumentExportPipeline
from quotegen.services.rasterizer import get_rasterizer
from quotegen.services.email_service import send_quote_email
from quotegen.blueprints.metrics import quotes_created_total, documents_exported_total
from quotegen.exceptions import ExportError, NotFoundError, ValidationError

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')

WIZARD_KEY = 'quote_wizard'

PRINT_SCRIPT = '<script>window.addEventListener("load", function () { window.print(); });</script>'


# ----------------------------------------------------------------------
# Wizard state helpers
# ----------------------------------------------------------------------

def _empty_wizard() -> dict:
    return {
        'customer_id': None,
        'service_id': None,
        'bandwidth_option_id': None,
        'contract_term_months': current_app.config.get('DEFAULT_CONTRACT_MONTHS', 12),
        'feature_ids': [],
        'notes': None,
    }


def get_wizard() -> dict:
    """Get wizard state from session."""
    if WIZARD_KEY not in session:
        session[WIZARD_KEY] = _empty_wizard()
        session.modified = True
    return session[WIZARD_KEY]


def save_wizard(state: dict) -> None:
    session[WIZARD_KEY] = state
    session.modified = True


def _wizard_summary(db_session, state: dict) -> dict:
    """Wizard state with resolved catalog entries and live totals."""
    customer = None
    if state.get('customer_id'):
        try:
            customer = customer_service.get_customer(db_session, state['customer_id'])
        except NotFoundError:
            customer = None

    service = db_session.get(Service, state['service_id']) if state.get('service_id') else None
    bandwidth = (
        db_session.get(BandwidthOption, state['bandwidth_option_id'])
        if state.get('bandwidth_option_id') else None
    )
    features = []
    if state.get('feature_ids'):
        features = db_session.query(Feature).filter(Feature.id.in_(state['feature_ids'])).all()

    totals = aggregate_totals(
        bandwidth_monthly_price=bandwidth.monthly_price if bandwidth else None,
        setup_fee=service.setup_fee if service else None,
        features=features
    )

    return {
        'state': state,
        'customer': customer.to_dict() if customer else None,
        'service': service.to_dict() if service else None,
        'bandwidth_option': bandwidth.to_dict() if bandwidth else None,
        'features': [f.to_dict() for f in features],
        'totals': totals.to_dict(),
        'ready': bool(customer),
    }


def _wizard_response(status_code: int = 200) -> Tuple[Response, int]:
    summary = _wizard_summary(get_session(), get_wizard())
    return jsonify({'status': 'ok', 'wizard': summary}), status_code


# ----------------------------------------------------------------------
# Wizard
# ----------------------------------------------------------------------

@quotes_bp.route('/wizard', methods=['GET'])
@require_login
def wizard_state():
    """Current wizard selection and pricing summary."""
    return _wizard_response()


@quotes_bp.route('/wizard', methods=['DELETE'])
@require_login
def wizard_reset():
    session.pop(WIZARD_KEY, None)
    session.modified = True
    return _wizard_response()


@quotes_bp.route('/wizard/customer', methods=['POST'])
@require_login
def wizard_customer():
    """Step 1: pick an existing customer (customer_id) or create a new one."""
    db_session = get_session()
    state = get_wizard()

    payload = request.get_json(silent=True) if request.is_json else request.form
    existing_id = (payload or {}).get('customer_id')

    if existing_id:
        try:
            customer = customer_service.get_customer(db_session, int(existing_id))
        except (TypeError, ValueError):
            raise ValidationError('Invalid customer', errors={'customer_id': ['Must be a number']})
    else:
        form = CustomerForm()
        if not form.validate_on_submit():
            raise ValidationError('Invalid customer data', errors=form.errors)
        customer = customer_service.create_customer(db_session, form.data)

    state['customer_id'] = customer.id
    save_wizard(state)
    current_app.logger.info(f"[QUOTE] Wizard customer set to {customer.id} by user {g.user.id}")
    return _wizard_response()


@quotes_bp.route('/wizard/service', methods=['POST'])
@require_login
def wizard_service():
    """Step 2: service, bandwidth tier and contract term."""
    db_session = get_session()
    state = get_wizard()

    form = ServiceSelectionForm()
    form.set_contract_terms(current_app.config.get('CONTRACT_TERMS', (12, 24, 36, 48, 60)))
    if not form.validate_on_submit():
        raise ValidationError('Invalid service selection', errors=form.errors)

    service = db_session.get(Service, form.service_id.data)
    if not service:
        raise NotFoundError(f'Service {form.service_id.data} not found')

    bandwidth = db_session.get(BandwidthOption, form.bandwidth_option_id.data)
    if not bandwidth or bandwidth.service_id != service.id:
        raise ValidationError('Invalid bandwidth option',
                              errors={'bandwidth_option_id': ['Not offered for this service']})
    if not bandwidth.is_available and not g.user.is_admin:
        raise ValidationError('Bandwidth option is not available',
                              errors={'bandwidth_option_id': ['Not available']})

    # Features belong to a service; a new service starts with none selected
    if state.get('service_id') != service.id:
        state['feature_ids'] = []

    state['service_id'] = service.id
    state['bandwidth_option_id'] = bandwidth.id
    state['contract_term_months'] = form.contract_term_months.data
    save_wizard(state)
    return _wizard_response()


@quotes_bp.route('/wizard/features', methods=['POST'])
@require_login
def wizard_features():
    """Step 3: add-on features (only those linked to the chosen service) and notes."""
    db_session = get_session()
    state = get_wizard()

    if not state.get('service_id'):
        raise ValidationError('Select a service first')
    service = db_session.get(Service, state['service_id'])
    if not service:
        raise NotFoundError(f"Service {state['service_id']} not found")

    form = FeatureSelectionForm()
    form.feature_ids.choices = [(f.id, f.name) for f in service.features]
    if not form.validate_on_submit():
        raise ValidationError('Invalid feature selection', errors=form.errors)

    state['feature_ids'] = list(dict.fromkeys(form.feature_ids.data or []))
    state['notes'] = (form.notes.data or '').strip() or None
    save_wizard(state)
    return _wizard_response()


@quotes_bp.route('/wizard/generate', methods=['POST'])
@require_login
def wizard_generate():
    """Persist the quote from the wizard selection and clear the wizard."""
    db_session = get_session()
    state = get_wizard()

    if not state.get('customer_id'):
        raise ValidationError('Add customer details first')

    draft = QuoteDraft(
        customer_id=state['customer_id'],
        service_id=state.get('service_id'),
        bandwidth_option_id=state.get('bandwidth_option_id'),
        feature_ids=state.get('feature_ids') or [],
        contract_term_months=state.get('contract_term_months') or 12,
        notes=state.get('notes'),
    )

    cfg = current_app.config
    quote = quote_service.create_quote(
        db_session,
        draft,
        sales_rep_id=g.user.id,
        valid_days=cfg.get('QUOTE_VALID_DAYS', 30),
        linkage_mode=cfg.get('QUOTE_LINKAGE_MODE', 'columns'),
        max_attempts=cfg.get('QUOTE_NUMBER_MAX_ATTEMPTS', 5),
    )
    quotes_created_total.inc()

    session.pop(WIZARD_KEY, None)
    session.modified = True

    return jsonify({'status': 'ok', 'quote': quote.to_dict()}), 201


# ----------------------------------------------------------------------
# Quotes
# ----------------------------------------------------------------------

@quotes_bp.route('/', methods=['GET'])
@require_login
def list_quotes():
    """List quotes with filters (?status=, ?q=)."""
    status_filter = request.args.get('status', '').strip().lower() or None
    if status_filter and status_filter not in {s.value for s in QuoteStatus}:
        raise ValidationError(f'Unknown status: {status_filter}')

    search = request.args.get('q', '').strip() or None
    quotes = quote_service.list_quotes(get_session(), status=status_filter, search=search)
    return jsonify({'status': 'ok', 'quotes': [q.to_dict() for q in quotes]})


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@require_login
def view_quote(quote_id: int):
    db_session = get_session()
    quote = quote_service.get_quote(db_session, quote_id)
    context = quote_service.build_document_context(db_session, quote)

    data = quote.to_dict()
    data['customer'] = quote.customer.to_dict() if quote.customer else None
    data['service_name'] = context.service_name
    data['bandwidth'] = context.bandwidth
    data['notes'] = context.notes
    data['document_features'] = [
        {'name': f.name, 'monthly_price': str(f.monthly_price or 0), 'one_time_fee': str(f.one_time_fee or 0)}
        for f in context.features
    ]
    return jsonify({'status': 'ok', 'quote': data})


@quotes_bp.route('/<int:quote_id>/status', methods=['POST'])
@require_login
def update_status(quote_id: int):
    form = QuoteStatusForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid status', errors=form.errors)

    quote = quote_service.update_quote_status(get_session(), quote_id, form.status.data)
    return jsonify({'status': 'ok', 'quote': quote.to_dict()})


# ----------------------------------------------------------------------
# Documents
# ----------------------------------------------------------------------

def _settings_store(db_session) -> SettingsStore:
    return SettingsStore(db_session, branding_defaults_from_config(current_app.config))


def render_quote_html(db_session, quote, template_name: Optional[str] = None) -> str:
    """Resolve a quote against the chosen (or default) template."""
    cfg = current_app.config
    store = _settings_store(db_session)
    template = store.get_template(template_name or cfg.get('DEFAULT_DOCUMENT_TEMPLATE', 'standard'))
    branding = store.get_branding()
    branding.company_logo = inline_static_logo(
        branding.company_logo, current_app.static_folder, current_app.static_url_path
    )
    context = quote_service.build_document_context(
        db_session, quote,
        branding=branding,
        currency_code=cfg.get('CURRENCY_CODE', 'MUR')
    )
    return render_document(template.html, context, strict=cfg.get('TEMPLATE_STRICT_TOKENS', False))


def export_quote_pdf(html: str, document_name: str):
    """Run the export pipeline with the configured rasterizer."""
    cfg = current_app.config
    pipeline = DocumentExportPipeline(
        get_rasterizer(cfg),
        scale=cfg.get('EXPORT_SCALE', 2),
        asset_timeout=cfg.get('EXPORT_ASSET_TIMEOUT', 10),
    )
    try:
        result = pipeline.export(html, document_name)
    except ExportError:
        documents_exported_total.labels(format='pdf', outcome='error').inc()
        raise
    documents_exported_total.labels(format='pdf', outcome='success').inc()
    return result


@quotes_bp.route('/<int:quote_id>/document', methods=['GET'])
@require_login
def quote_document(quote_id: int):
    """Rendered HTML document (?template=name)."""
    db_session = get_session()
    quote = quote_service.get_quote(db_session, quote_id)
    html = render_quote_html(db_session, quote, request.args.get('template'))
    documents_exported_total.labels(format='html', outcome='success').inc()
    return Response(html, mimetype='text/html')


@quotes_bp.route('/<int:quote_id>/print', methods=['GET'])
@require_login
def print_quote(quote_id: int):
    """Rendered document that opens the browser print dialog once loaded."""
    db_session = get_session()
    quote = quote_service.get_quote(db_session, quote_id)
    html = render_quote_html(db_session, quote, request.args.get('template'))

    if '</body>' in html:
        html = html.replace('</body>', PRINT_SCRIPT + '</body>', 1)
    else:
        html += PRINT_SCRIPT
    documents_exported_total.labels(format='print', outcome='success').inc()
    return Response(html, mimetype='text/html')


@quotes_bp.route('/<int:quote_id>/pdf', methods=['GET'])
@require_login
def download_pdf(quote_id: int):
    """Paginated A4 PDF named Quote-{quote number}.pdf."""
    db_session = get_session()
    quote = quote_service.get_quote(db_session, quote_id)
    html = render_quote_html(db_session, quote, request.args.get('template'))
    result = export_quote_pdf(html, quote.document_name)

    return send_file(
        BytesIO(result.content),
        mimetype=result.mimetype,
        as_attachment=True,
        download_name=result.filename
    )


@quotes_bp.route('/<int:quote_id>/email', methods=['POST'])
@require_login
def email_quote(quote_id: int):
    """Email the document with its PDF; a draft quote becomes sent."""
    db_session = get_session()
    quote = quote_service.get_quote(db_session, quote_id)

    form = QuoteEmailForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid email request', errors=form.errors)

    recipient = (form.to.data or '').strip() or (quote.customer.email if quote.customer else None)
    if not recipient:
        raise ValidationError('No recipient email', errors={'to': ['Required']})

    html = render_quote_html(db_session, quote, form.template.data or None)
    result = export_quote_pdf(html, quote.document_name)
    branding = _settings_store(db_session).get_branding()

    sent = send_quote_email(
        recipient, quote.quote_number, html,
        pdf_bytes=result.content, filename=result.filename,
        company_name=branding.company_name
    )
    if sent and quote.status == QuoteStatus.DRAFT.value:
        quote = quote_service.update_quote_status(db_session, quote.id, QuoteStatus.SENT.value)

    message = f'Quote sent to {recipient}' if sent else 'Email is not configured or sending failed'
    return jsonify({'status': 'ok', 'sent': sent, 'message': message, 'quote': quote.to_dict()})
