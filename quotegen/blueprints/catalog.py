"""
Catalog blueprint: services, bandwidth tiers and add-on features.

Any logged-in user can read the catalog; only admins change it. Sales users
never see unavailable bandwidth options.
"""
from flask import Blueprint, jsonify, request, g, current_app, Response
from sqlalchemy.exc import SQLAlchemyError
from typing import Tuple, Union

from quotegen.database import get_session
from quotegen.models import Service, BandwidthOption, Feature
from quotegen.forms.quote_forms import ServiceForm, BandwidthOptionForm, FeatureForm
from quotegen.middleware import require_login, require_role
from quotegen.services.pricing_service import to_money
from quotegen.exceptions import NotFoundError, StoreError, ValidationError

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


def _get_or_404(db_session, model, object_id: int, label: str):
    obj = db_session.get(model, object_id)
    if obj is None:
        raise NotFoundError(f'{label} {object_id} not found')
    return obj


def _commit(db_session, action: str) -> None:
    """Commit or roll back, surfacing store failures as StoreError."""
    try:
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        current_app.logger.error(f"[CATALOG] Failed to {action}: {e}")
        raise StoreError(f'Failed to {action}') from e


def _validated(form):
    if not form.validate_on_submit():
        raise ValidationError('Invalid catalog data', errors=form.errors)
    return form


def _has_field(name: str) -> bool:
    """Whether the request body carries `name` (JSON or form)."""
    if request.is_json:
        return name in (request.get_json(silent=True) or {})
    return name in request.form


def _visible_bandwidth(service: Service):
    """Bandwidth options the current user may see."""
    if g.user.is_admin:
        return service.bandwidth_options
    return [b for b in service.bandwidth_options if b.is_available]


def _service_payload(service: Service) -> dict:
    data = service.to_dict()
    data['bandwidth_options'] = [b.to_dict() for b in _visible_bandwidth(service)]
    data['features'] = [f.to_dict() for f in service.features]
    return data


# ----------------------------------------------------------------------
# Services
# ----------------------------------------------------------------------

@catalog_bp.route('/services', methods=['GET'])
@require_login
def list_services() -> Response:
    """List services (optionally by category) with their tiers and linked features."""
    db_session = get_session()
    query = db_session.query(Service)

    category = request.args.get('category', '').strip()
    if category:
        query = query.filter(Service.category == category)

    services = query.order_by(Service.category, Service.name).all()
    return jsonify({'status': 'ok', 'services': [_service_payload(s) for s in services]})


@catalog_bp.route('/services', methods=['POST'])
@require_role('admin')
def create_service() -> Tuple[Response, int]:
    form = _validated(ServiceForm())
    db_session = get_session()

    service = Service(
        name=form.name.data.strip(),
        category=form.category.data,
        description=(form.description.data or '').strip() or None,
        setup_fee=to_money(form.setup_fee.data),
        min_contract_months=form.min_contract_months.data or 12,
    )
    db_session.add(service)
    _commit(db_session, 'create service')

    current_app.logger.info(f"[CATALOG] Service {service.id} created by user {g.user.id}")
    return jsonify({'status': 'ok', 'service': _service_payload(service)}), 201


@catalog_bp.route('/services/<int:service_id>', methods=['GET'])
@require_login
def get_service(service_id: int) -> Response:
    service = _get_or_404(get_session(), Service, service_id, 'Service')
    return jsonify({'status': 'ok', 'service': _service_payload(service)})


@catalog_bp.route('/services/<int:service_id>', methods=['PUT', 'POST'])
@require_role('admin')
def update_service(service_id: int) -> Response:
    """Edit a service. Quotes already issued keep their stored totals."""
    db_session = get_session()
    service = _get_or_404(db_session, Service, service_id, 'Service')
    form = _validated(ServiceForm())

    service.name = form.name.data.strip()
    service.category = form.category.data
    service.description = (form.description.data or '').strip() or None
    service.setup_fee = to_money(form.setup_fee.data)
    service.min_contract_months = form.min_contract_months.data or service.min_contract_months
    _commit(db_session, 'update service')

    current_app.logger.info(f"[CATALOG] Service {service.id} updated by user {g.user.id}")
    return jsonify({'status': 'ok', 'service': _service_payload(service)})


@catalog_bp.route('/services/<int:service_id>', methods=['DELETE'])
@require_role('admin')
def delete_service(service_id: int) -> Response:
    db_session = get_session()
    service = _get_or_404(db_session, Service, service_id, 'Service')
    db_session.delete(service)
    _commit(db_session, 'delete service')

    current_app.logger.info(f"[CATALOG] Service {service_id} deleted by user {g.user.id}")
    return jsonify({'status': 'ok'})


# ----------------------------------------------------------------------
# Bandwidth options
# ----------------------------------------------------------------------

@catalog_bp.route('/services/<int:service_id>/bandwidth', methods=['GET'])
@require_login
def list_bandwidth(service_id: int) -> Response:
    service = _get_or_404(get_session(), Service, service_id, 'Service')
    return jsonify({'status': 'ok', 'bandwidth_options': [b.to_dict() for b in _visible_bandwidth(service)]})


@catalog_bp.route('/services/<int:service_id>/bandwidth', methods=['POST'])
@require_role('admin')
def create_bandwidth(service_id: int) -> Tuple[Response, int]:
    db_session = get_session()
    service = _get_or_404(db_session, Service, service_id, 'Service')
    form = _validated(BandwidthOptionForm())

    is_available = form.is_available.data if _has_field('is_available') else True
    option = BandwidthOption(
        service_id=service.id,
        bandwidth=form.bandwidth.data,
        unit=form.unit.data,
        monthly_price=to_money(form.monthly_price.data),
        is_available=is_available,
    )
    db_session.add(option)
    _commit(db_session, 'create bandwidth option')

    current_app.logger.info(f"[CATALOG] Bandwidth {option.label} added to service {service.id}")
    return jsonify({'status': 'ok', 'bandwidth_option': option.to_dict()}), 201


@catalog_bp.route('/bandwidth/<int:option_id>', methods=['PUT', 'POST'])
@require_role('admin')
def update_bandwidth(option_id: int) -> Response:
    db_session = get_session()
    option = _get_or_404(db_session, BandwidthOption, option_id, 'Bandwidth option')
    form = _validated(BandwidthOptionForm())

    option.bandwidth = form.bandwidth.data
    option.unit = form.unit.data
    option.monthly_price = to_money(form.monthly_price.data)
    if _has_field('is_available'):
        option.is_available = form.is_available.data
    _commit(db_session, 'update bandwidth option')

    return jsonify({'status': 'ok', 'bandwidth_option': option.to_dict()})


@catalog_bp.route('/bandwidth/<int:option_id>', methods=['DELETE'])
@require_role('admin')
def delete_bandwidth(option_id: int) -> Response:
    db_session = get_session()
    option = _get_or_404(db_session, BandwidthOption, option_id, 'Bandwidth option')
    db_session.delete(option)
    _commit(db_session, 'delete bandwidth option')
    return jsonify({'status': 'ok'})


# ----------------------------------------------------------------------
# Features
# ----------------------------------------------------------------------

@catalog_bp.route('/features', methods=['GET'])
@require_login
def list_features() -> Response:
    features = get_session().query(Feature).order_by(Feature.name).all()
    return jsonify({'status': 'ok', 'features': [f.to_dict() for f in features]})


@catalog_bp.route('/features', methods=['POST'])
@require_role('admin')
def create_feature() -> Tuple[Response, int]:
    form = _validated(FeatureForm())
    db_session = get_session()

    feature = Feature(
        name=form.name.data.strip(),
        description=(form.description.data or '').strip() or None,
        monthly_price=to_money(form.monthly_price.data),
        one_time_fee=to_money(form.one_time_fee.data),
    )
    db_session.add(feature)
    _commit(db_session, 'create feature')

    current_app.logger.info(f"[CATALOG] Feature {feature.id} created by user {g.user.id}")
    return jsonify({'status': 'ok', 'feature': feature.to_dict()}), 201


@catalog_bp.route('/features/<int:feature_id>', methods=['GET'])
@require_login
def get_feature(feature_id: int) -> Response:
    feature = _get_or_404(get_session(), Feature, feature_id, 'Feature')
    return jsonify({'status': 'ok', 'feature': feature.to_dict()})


@catalog_bp.route('/features/<int:feature_id>', methods=['PUT', 'POST'])
@require_role('admin')
def update_feature(feature_id: int) -> Response:
    db_session = get_session()
    feature = _get_or_404(db_session, Feature, feature_id, 'Feature')
    form = _validated(FeatureForm())

    feature.name = form.name.data.strip()
    feature.description = (form.description.data or '').strip() or None
    feature.monthly_price = to_money(form.monthly_price.data)
    feature.one_time_fee = to_money(form.one_time_fee.data)
    _commit(db_session, 'update feature')

    return jsonify({'status': 'ok', 'feature': feature.to_dict()})


@catalog_bp.route('/features/<int:feature_id>', methods=['DELETE'])
@require_role('admin')
def delete_feature(feature_id: int) -> Response:
    db_session = get_session()
    feature = _get_or_404(db_session, Feature, feature_id, 'Feature')
    db_session.delete(feature)
    _commit(db_session, 'delete feature')
    return jsonify({'status': 'ok'})


# ----------------------------------------------------------------------
# Service <-> feature links
# ----------------------------------------------------------------------

@catalog_bp.route('/services/<int:service_id>/features', methods=['GET'])
@require_login
def list_service_features(service_id: int) -> Response:
    service = _get_or_404(get_session(), Service, service_id, 'Service')
    return jsonify({'status': 'ok', 'features': [f.to_dict() for f in service.features]})


@catalog_bp.route('/services/<int:service_id>/features/<int:feature_id>', methods=['POST'])
@require_role('admin')
def link_feature(service_id: int, feature_id: int) -> Union[Response, Tuple[Response, int]]:
    db_session = get_session()
    service = _get_or_404(db_session, Service, service_id, 'Service')
    feature = _get_or_404(db_session, Feature, feature_id, 'Feature')

    if feature in service.features:
        return jsonify({'status': 'ok', 'features': [f.to_dict() for f in service.features]})

    service.features.append(feature)
    _commit(db_session, 'link feature')

    current_app.logger.info(f"[CATALOG] Feature {feature.id} linked to service {service.id}")
    return jsonify({'status': 'ok', 'features': [f.to_dict() for f in service.features]}), 201


@catalog_bp.route('/services/<int:service_id>/features/<int:feature_id>', methods=['DELETE'])
@require_role('admin')
def unlink_feature(service_id: int, feature_id: int) -> Response:
    db_session = get_session()
    service = _get_or_404(db_session, Service, service_id, 'Service')
    feature = _get_or_404(db_session, Feature, feature_id, 'Feature')

    if feature not in service.features:
        raise NotFoundError(f'Feature {feature_id} is not linked to service {service_id}')

    service.features.remove(feature)
    _commit(db_session, 'unlink feature')
    return jsonify({'status': 'ok', 'features': [f.to_dict() for f in service.features]})
