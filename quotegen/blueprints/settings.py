"""
Settings blueprint: company branding, branding presets and document templates.

Everything goes through an injected SettingsStore bound to the request's
database session.
"""
from flask import Blueprint, jsonify, request, g, current_app, Response
from typing import Tuple

from quotegen.database import get_session
from quotegen.forms.quote_forms import BrandingForm, PresetForm, TemplateForm
from quotegen.middleware import require_login, require_role
from quotegen.services.settings_store import SettingsStore, branding_defaults_from_config, logo_to_data_url
from quotegen.services.template_engine import PLACEHOLDERS
from quotegen.exceptions import ValidationError

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


def _store() -> SettingsStore:
    return SettingsStore(get_session(), branding_defaults_from_config(current_app.config))


def _branding_fields(form: BrandingForm) -> dict:
    """Submitted, non-empty branding fields."""
    return {
        name: value for name, value in form.data.items()
        if name != 'csrf_token' and value not in (None, '')
    }


# ----------------------------------------------------------------------
# Branding
# ----------------------------------------------------------------------

@settings_bp.route('/branding', methods=['GET'])
@require_login
def get_branding() -> Response:
    return jsonify({'status': 'ok', 'branding': _store().get_branding().to_dict()})


@settings_bp.route('/branding', methods=['PUT', 'POST'])
@require_login
def update_branding() -> Response:
    form = BrandingForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid branding', errors=form.errors)

    branding = _store().save_branding(_branding_fields(form))
    current_app.logger.info(f"[SETTINGS] Branding updated by user {g.user.id}")
    return jsonify({'status': 'ok', 'branding': branding.to_dict()})


@settings_bp.route('/branding', methods=['DELETE'])
@require_login
def reset_branding() -> Response:
    """Back to the configured defaults."""
    branding = _store().reset_branding()
    return jsonify({'status': 'ok', 'branding': branding.to_dict()})


@settings_bp.route('/branding/logo', methods=['POST'])
@require_login
def upload_logo() -> Response:
    """Upload the company logo (multipart field `logo`)."""
    cfg = current_app.config
    logo_url = logo_to_data_url(
        request.files.get('logo'),
        max_size=cfg.get('MAX_LOGO_SIZE', 1024 * 1024),
        allowed_types=cfg.get('ALLOWED_LOGO_MIME_TYPES', set())
    )
    branding = _store().save_branding({'company_logo': logo_url})
    current_app.logger.info(f"[SETTINGS] Logo uploaded by user {g.user.id}")
    return jsonify({'status': 'ok', 'branding': branding.to_dict()})


# ----------------------------------------------------------------------
# Presets
# ----------------------------------------------------------------------

@settings_bp.route('/presets', methods=['GET'])
@require_login
def list_presets() -> Response:
    return jsonify({'status': 'ok', 'presets': _store().list_presets()})


@settings_bp.route('/presets', methods=['POST'])
@require_login
def save_preset() -> Tuple[Response, int]:
    """Save a preset from the submitted branding fields, or the current branding."""
    form = PresetForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid preset', errors=form.errors)

    branding_form = BrandingForm()
    if not branding_form.validate():
        raise ValidationError('Invalid branding', errors=branding_form.errors)
    fields = _branding_fields(branding_form)

    preset = _store().save_preset(form.name.data, fields or None)
    return jsonify({'status': 'ok', 'preset': preset}), 201


@settings_bp.route('/presets/<name>/apply', methods=['POST'])
@require_login
def apply_preset(name: str) -> Response:
    branding = _store().apply_preset(name)
    current_app.logger.info(f"[SETTINGS] Preset {name} applied by user {g.user.id}")
    return jsonify({'status': 'ok', 'branding': branding.to_dict()})


@settings_bp.route('/presets/<name>', methods=['DELETE'])
@require_login
def delete_preset(name: str) -> Response:
    _store().delete_preset(name)
    return jsonify({'status': 'ok'})


# ----------------------------------------------------------------------
# Templates
# ----------------------------------------------------------------------

@settings_bp.route('/placeholders', methods=['GET'])
@require_login
def list_placeholders() -> Response:
    """Placeholder vocabulary available to template authors."""
    return jsonify({
        'status': 'ok',
        'placeholders': [
            {'name': p.name, 'group': p.group, 'fallback': p.fallback}
            for p in PLACEHOLDERS.values()
        ]
    })


@settings_bp.route('/templates', methods=['GET'])
@require_login
def list_templates() -> Response:
    templates = _store().list_templates()
    return jsonify({'status': 'ok', 'templates': [t.to_dict(include_html=False) for t in templates]})


@settings_bp.route('/templates/<name>', methods=['GET'])
@require_login
def get_template(name: str) -> Response:
    return jsonify({'status': 'ok', 'template': _store().get_template(name).to_dict()})


@settings_bp.route('/templates', methods=['POST'])
@require_role('admin')
def save_template() -> Tuple[Response, int]:
    """Create or replace a saved template (built-in names are read-only)."""
    form = TemplateForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid template', errors=form.errors)

    template = _store().save_template(form.name.data, form.html.data, title=form.title.data)
    current_app.logger.info(f"[SETTINGS] Template {template.name} saved by user {g.user.id}")
    return jsonify({'status': 'ok', 'template': template.to_dict()}), 201


@settings_bp.route('/templates/<name>', methods=['DELETE'])
@require_role('admin')
def delete_template(name: str) -> Response:
    _store().delete_template(name)
    current_app.logger.info(f"[SETTINGS] Template {name} deleted by user {g.user.id}")
    return jsonify({'status': 'ok'})
