"""
Settings store for company branding, branding presets and HTML templates.

Every collaborator receives a `SettingsStore` bound to a session and the
configured branding defaults; there is no module-level state. Entries are
JSON documents in the `setting_entry` table under prefixed keys:

    branding            current company branding
    preset:<name>       saved branding preset
    template:<name>     saved HTML template

Built-in templates live in code and cannot be overwritten or deleted.
"""
import base64
import binascii
import logging
import mimetypes
import os
import re
from io import BytesIO
from typing import Dict, List, Optional, Union

from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage
from werkzeug.security import safe_join

from quotegen.models import SettingEntry
from quotegen.exceptions import (
    ForbiddenError, NotFoundError, StoreError, TemplateRenderError, ValidationError
)
from quotegen.services.document_templates import BUILTIN_TEMPLATES, DocumentTemplate
from quotegen.services.template_engine import CompanyBranding, DEFAULT_PRIMARY_COLOR, find_unknown_placeholders

logger = logging.getLogger(__name__)

BRANDING_KEY = 'branding'
PRESET_PREFIX = 'preset:'
TEMPLATE_PREFIX = 'template:'

NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9 _.-]{0,79}$')
COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')
DATA_URL_PATTERN = re.compile(r'^data:(image/[\w.+-]+);base64,(.+)$', re.DOTALL)


def _validate_name(name: str, kind: str) -> str:
    name = (name or '').strip()
    if not NAME_PATTERN.match(name):
        raise ValidationError(
            f'Invalid {kind} name',
            errors={'name': ['Use 1-80 letters, digits, spaces, dots, dashes or underscores']}
        )
    return name


def _verify_image(data: bytes) -> str:
    """Verify image bytes with Pillow and return the detected MIME type."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ValidationError('Logo is not a valid image', errors={'logo': [str(e)]})
    return Image.MIME.get(fmt, 'application/octet-stream')


def logo_to_data_url(file: FileStorage, max_size: int, allowed_types) -> str:
    """
    Validate an uploaded logo (size, type, decodable) and encode it as a data URL.

    Raises:
        ValidationError: If validation fails
    """
    if not file or not file.filename:
        raise ValidationError('No logo file provided', errors={'logo': ['Required']})

    data = file.read()
    if len(data) > max_size:
        max_kb = max_size / 1024
        raise ValidationError(f'Logo is too large. Maximum {max_kb:.0f}KB', errors={'logo': ['Too large']})

    mime_type = _verify_image(data)
    if allowed_types and mime_type not in allowed_types:
        raise ValidationError(
            f"Logo type not allowed: {mime_type}. Allowed: {', '.join(sorted(allowed_types))}",
            errors={'logo': ['Unsupported type']}
        )

    logger.info(f"[SETTINGS] Logo validation passed: {file.filename} ({len(data)} bytes, {mime_type})")
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def is_usable_logo(url: Optional[str]) -> bool:
    """Data URLs must decode to an image; other URLs are taken as-is."""
    if not url:
        return False
    match = DATA_URL_PATTERN.match(url)
    if not match:
        return not url.startswith('data:')
    try:
        _verify_image(base64.b64decode(match.group(2), validate=True))
    except (binascii.Error, ValidationError):
        return False
    return True


def inline_static_logo(url: Optional[str], static_folder: Optional[str], static_url_path: str = '/static') -> str:
    """
    Replace a logo served from the app's static folder with a data URL.

    Exported documents are loaded on about:blank, where app-relative URLs
    never resolve. Other URLs are returned unchanged.
    """
    prefix = (static_url_path or '').rstrip('/') + '/'
    if not url or not static_folder or not url.startswith(prefix):
        return url or ''

    path = safe_join(static_folder, url[len(prefix):])
    if path is None or not os.path.isfile(path):
        logger.warning(f"[SETTINGS] Logo {url} not found in static folder")
        return url

    mime_type = mimetypes.guess_type(path)[0] or 'application/octet-stream'
    with open(path, 'rb') as f:
        data = f.read()
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class SettingsStore:
    """Branding, presets and templates persisted in the catalog store."""

    def __init__(self, session, defaults: Optional[CompanyBranding] = None):
        self.session = session
        self.defaults = defaults or CompanyBranding()

    # ------------------------------------------------------------------
    # Raw entries
    # ------------------------------------------------------------------

    def _get(self, key: str) -> Optional[SettingEntry]:
        return self.session.query(SettingEntry).filter(SettingEntry.key == key).first()

    def _put(self, key: str, value) -> None:
        try:
            entry = self._get(key)
            if entry is None:
                self.session.add(SettingEntry(key=key, value=value))
            else:
                # JSON columns do not track in-place mutation
                entry.value = value
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[SETTINGS] Failed to write {key}: {e}")
            raise StoreError(f'Failed to save setting {key}') from e

    def _delete(self, key: str) -> bool:
        entry = self._get(key)
        if entry is None:
            return False
        try:
            self.session.delete(entry)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f'Failed to delete setting {key}') from e
        return True

    def _list(self, prefix: str) -> List[SettingEntry]:
        return (
            self.session.query(SettingEntry)
            .filter(SettingEntry.key.like(f'{prefix}%'))
            .order_by(SettingEntry.key)
            .all()
        )

    # ------------------------------------------------------------------
    # Branding
    # ------------------------------------------------------------------

    def get_branding(self) -> CompanyBranding:
        """Current branding; unset fields and unusable logos fall back to defaults."""
        entry = self._get(BRANDING_KEY)
        branding = CompanyBranding.from_dict(entry.value if entry else None, self.defaults)
        if not is_usable_logo(branding.company_logo):
            logger.warning("[SETTINGS] Stored logo is not a valid image, using default logo")
            branding.company_logo = self.defaults.company_logo
        return branding

    def _normalize_branding(self, data: Union[CompanyBranding, Dict]) -> CompanyBranding:
        if isinstance(data, CompanyBranding):
            data = data.to_dict()
        branding = CompanyBranding.from_dict(data, self.get_branding())
        if branding.primary_color and not COLOR_PATTERN.match(branding.primary_color):
            raise ValidationError('Invalid color', errors={'primary_color': ['Use a hex color like #3b82f6']})
        return branding

    def save_branding(self, data: Union[CompanyBranding, Dict]) -> CompanyBranding:
        """Merge `data` over the current branding and persist it."""
        branding = self._normalize_branding(data)
        self._put(BRANDING_KEY, branding.to_dict())
        logger.info(f"[SETTINGS] Branding saved ({branding.company_name})")
        return branding

    def reset_branding(self) -> CompanyBranding:
        self._delete(BRANDING_KEY)
        return self.get_branding()

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    def list_presets(self) -> List[Dict]:
        return [
            {'name': entry.key[len(PRESET_PREFIX):], 'branding': entry.value}
            for entry in self._list(PRESET_PREFIX)
        ]

    def save_preset(self, name: str, branding: Union[CompanyBranding, Dict, None] = None) -> Dict:
        """Save `branding` (or the current branding) under `name`."""
        name = _validate_name(name, 'preset')
        data = self._normalize_branding(branding) if branding is not None else self.get_branding()
        self._put(PRESET_PREFIX + name, data.to_dict())
        logger.info(f"[SETTINGS] Preset saved: {name}")
        return {'name': name, 'branding': data.to_dict()}

    def apply_preset(self, name: str) -> CompanyBranding:
        """Make a saved preset the current branding."""
        entry = self._get(PRESET_PREFIX + (name or ''))
        if entry is None:
            raise NotFoundError(f'Preset {name} not found')
        return self.save_branding(entry.value or {})

    def delete_preset(self, name: str) -> None:
        if not self._delete(PRESET_PREFIX + (name or '')):
            raise NotFoundError(f'Preset {name} not found')
        logger.info(f"[SETTINGS] Preset deleted: {name}")

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def list_templates(self) -> List[DocumentTemplate]:
        """Built-in templates followed by saved ones."""
        saved = [
            DocumentTemplate(
                name=entry.key[len(TEMPLATE_PREFIX):],
                title=(entry.value or {}).get('title') or entry.key[len(TEMPLATE_PREFIX):],
                html=(entry.value or {}).get('html', ''),
            )
            for entry in self._list(TEMPLATE_PREFIX)
        ]
        return list(BUILTIN_TEMPLATES.values()) + saved

    def get_template(self, name: str) -> DocumentTemplate:
        if name in BUILTIN_TEMPLATES:
            return BUILTIN_TEMPLATES[name]
        entry = self._get(TEMPLATE_PREFIX + (name or ''))
        if entry is None:
            raise NotFoundError(f'Template {name} not found')
        value = entry.value or {}
        return DocumentTemplate(name=name, title=value.get('title') or name, html=value.get('html', ''))

    def save_template(self, name: str, html: str, title: Optional[str] = None) -> DocumentTemplate:
        """
        Save an HTML template.

        Raises:
            ForbiddenError: name belongs to a built-in template
            ValidationError: empty markup or invalid name
            TemplateRenderError: markup uses tokens outside the vocabulary
        """
        name = _validate_name(name, 'template')
        if name in BUILTIN_TEMPLATES:
            raise ForbiddenError(f'Built-in template {name} is read-only')
        if not html or not html.strip():
            raise ValidationError('Template markup is required', errors={'html': ['Required']})

        unknown = find_unknown_placeholders(html)
        if unknown:
            raise TemplateRenderError(
                f"Template uses unknown placeholders: {', '.join(sorted(unknown))}",
                unknown_tokens=unknown
            )

        template = DocumentTemplate(name=name, title=(title or '').strip() or name, html=html)
        self._put(TEMPLATE_PREFIX + name, {'title': template.title, 'html': html})
        logger.info(f"[SETTINGS] Template saved: {name}")
        return template

    def delete_template(self, name: str) -> None:
        if name in BUILTIN_TEMPLATES:
            raise ForbiddenError(f'Built-in template {name} is read-only')
        if not self._delete(TEMPLATE_PREFIX + (name or '')):
            raise NotFoundError(f'Template {name} not found')
        logger.info(f"[SETTINGS] Template deleted: {name}")


def branding_defaults_from_config(config) -> CompanyBranding:
    """Branding defaults from the Flask config."""
    return CompanyBranding(
        company_logo=config.get('COMPANY_LOGO_URL', ''),
        company_name=config.get('COMPANY_NAME', ''),
        company_address=config.get('COMPANY_ADDRESS', ''),
        company_contact=config.get('COMPANY_CONTACT', ''),
        company_email=config.get('COMPANY_EMAIL', ''),
        primary_color=config.get('PRIMARY_COLOR') or DEFAULT_PRIMARY_COLOR,
    )
