"""
Forms for the catalog, customers, quote wizard and settings.

All forms accept either form-encoded bodies or JSON (Flask-WTF wraps
`request.get_json()` as form data when the request is JSON).
"""
from flask_wtf import FlaskForm
from wtforms import (
    BooleanField, DecimalField, IntegerField, PasswordField, SelectField,
    SelectMultipleField, StringField, TextAreaField
)
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, Regexp

from quotegen.models import BandwidthUnit, QuoteStatus, ServiceCategory

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
EMAIL_MESSAGE = 'Enter a valid email address'

DEFAULT_CONTRACT_TERMS = (12, 24, 36, 48, 60)


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Regexp(EMAIL_PATTERN, message=EMAIL_MESSAGE)])
    password = PasswordField('Password', validators=[DataRequired()])


# ----------------------------------------------------------------------
# Catalog (admin)
# ----------------------------------------------------------------------

class ServiceForm(FlaskForm):
    """Service definition."""

    name = StringField(
        'Service Name',
        validators=[DataRequired(message='Service name is required'), Length(max=200)]
    )

    category = SelectField(
        'Category',
        choices=[(c.value, c.value) for c in ServiceCategory],
        validators=[DataRequired()],
        default=ServiceCategory.DIA.value
    )

    description = TextAreaField('Description', validators=[Optional()])

    setup_fee = DecimalField(
        'Setup Fee',
        validators=[InputRequired(message='Setup fee is required'),
                    NumberRange(min=0, message='Setup fee cannot be negative')],
        places=2
    )

    min_contract_months = IntegerField(
        'Minimum Contract (months)',
        validators=[Optional(), NumberRange(min=1, max=120)],
        default=12
    )


class BandwidthOptionForm(FlaskForm):
    """Bandwidth tier of a service."""

    bandwidth = DecimalField(
        'Bandwidth',
        validators=[InputRequired(message='Bandwidth is required'),
                    NumberRange(min=0.01, message='Bandwidth must be greater than 0')]
    )

    unit = SelectField(
        'Unit',
        choices=[(u.value, u.value) for u in BandwidthUnit],
        default=BandwidthUnit.MBPS.value
    )

    monthly_price = DecimalField(
        'Monthly Price',
        validators=[InputRequired(message='Monthly price is required'),
                    NumberRange(min=0, message='Monthly price cannot be negative')],
        places=2
    )

    # Absent key reads as False; callers decide the default on update
    is_available = BooleanField('Available', default=True)


class FeatureForm(FlaskForm):
    """Add-on feature."""

    name = StringField('Feature Name', validators=[DataRequired(message='Feature name is required'), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    monthly_price = DecimalField(
        'Monthly Price',
        validators=[Optional(), NumberRange(min=0, message='Monthly price cannot be negative')],
        places=2
    )
    one_time_fee = DecimalField(
        'One-time Fee',
        validators=[Optional(), NumberRange(min=0, message='One-time fee cannot be negative')],
        places=2
    )


# ----------------------------------------------------------------------
# Quote wizard
# ----------------------------------------------------------------------

class CustomerForm(FlaskForm):
    """Customer details (first wizard step)."""

    company_name = StringField(
        'Company Name',
        validators=[DataRequired(message='Company name is required'),
                    Length(min=2, max=200, message='Company name must be at least 2 characters')]
    )
    contact_name = StringField(
        'Contact Name',
        validators=[DataRequired(message='Contact name is required'),
                    Length(min=2, max=200, message='Contact name must be at least 2 characters')]
    )
    email = StringField(
        'Email',
        validators=[DataRequired(message='Email is required'), Regexp(EMAIL_PATTERN, message=EMAIL_MESSAGE)]
    )
    phone = StringField('Phone', validators=[Optional(), Length(max=50)])
    address = TextAreaField('Address', validators=[Optional()])
    city = StringField('City', validators=[Optional(), Length(max=120)])
    country = StringField('Country', validators=[Optional(), Length(max=120)], default='Mauritius')
    industry = StringField('Industry', validators=[Optional(), Length(max=120)])


class ServiceSelectionForm(FlaskForm):
    """Service, bandwidth tier and contract term (second wizard step)."""

    service_id = IntegerField('Service', validators=[DataRequired(message='Please select a service')])
    bandwidth_option_id = IntegerField(
        'Bandwidth', validators=[DataRequired(message='Please select a bandwidth option')]
    )
    contract_term_months = SelectField(
        'Contract Term',
        coerce=int,
        choices=[(t, f'{t} months') for t in DEFAULT_CONTRACT_TERMS],
        default=12,
        validators=[DataRequired(message='Please select a contract term')]
    )

    def set_contract_terms(self, terms):
        self.contract_term_months.choices = [(t, f'{t} months') for t in terms]


class FeatureSelectionForm(FlaskForm):
    """Add-ons and notes (third wizard step). Choices are the service's linked features."""

    feature_ids = SelectMultipleField('Features', coerce=int, validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=5000)])


class QuoteStatusForm(FlaskForm):
    status = SelectField(
        'Status',
        choices=[(s.value, s.value.title()) for s in QuoteStatus],
        validators=[DataRequired()]
    )


class QuoteEmailForm(FlaskForm):
    to = StringField('Recipient', validators=[Optional(), Regexp(EMAIL_PATTERN, message=EMAIL_MESSAGE)])
    template = StringField('Template', validators=[Optional(), Length(max=80)])


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------

class BrandingForm(FlaskForm):
    """Company branding. Empty fields keep their current value."""

    company_name = StringField('Company Name', validators=[Optional(), Length(max=200)])
    company_address = TextAreaField('Address', validators=[Optional(), Length(max=500)])
    company_contact = StringField('Contact', validators=[Optional(), Length(max=200)])
    company_email = StringField('Email', validators=[Optional(), Regexp(EMAIL_PATTERN, message=EMAIL_MESSAGE)])
    company_logo = StringField('Logo URL', validators=[Optional()])
    primary_color = StringField(
        'Primary Color',
        validators=[Optional(), Regexp(r'^#(?:[0-9a-fA-F]{3}){1,2}$', message='Use a hex color like #3b82f6')]
    )


class PresetForm(FlaskForm):
    name = StringField('Preset Name', validators=[DataRequired(), Length(max=80)])


class TemplateForm(FlaskForm):
    """Saved HTML template."""

    name = StringField('Template Name', validators=[DataRequired(), Length(max=80)])
    title = StringField('Title', validators=[Optional(), Length(max=200)])
    html = TextAreaField('HTML', validators=[DataRequired(message='Template markup is required')])
