"""
Flask CLI commands for database setup and maintenance.

Commands:
- flask init-db: Create all tables
- flask create-user: Create an administrator or sales user
- flask seed-catalog: Load a sample service catalog
- flask migrate-legacy-quotes: Move notes-embedded linkage into columns
"""

import click
import re
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from quotegen.database import get_session, create_all
from quotegen.models import (
    AppUser, UserRole, Service, ServiceCategory, BandwidthOption, Feature, Quote, LEGACY_SCHEMA_VERSION
)
from quotegen.services.legacy_notes import migrate_legacy_quote

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

# name, category, description, setup fee, bandwidth tiers (value, unit, monthly price)
SAMPLE_SERVICES = [
    ('Dedicated Internet Access', ServiceCategory.DIA.value,
     'Uncontended, symmetric internet connectivity with SLA.', '5000.00',
     [('10', 'Mbps', '12000.00'), ('20', 'Mbps', '20000.00'), ('100', 'Mbps', '65000.00')]),
    ('Enterprise Broadband Internet', ServiceCategory.EBI.value,
     'Business-grade broadband with priority support.', '2500.00',
     [('50', 'Mbps', '4500.00'), ('100', 'Mbps', '7500.00')]),
    ('Private WAN', ServiceCategory.PRIVATE_WAN.value,
     'Layer 2/3 private links between customer sites.', '7500.00',
     [('10', 'Mbps', '9000.00'), ('1', 'Gbps', '95000.00')]),
]

# name, description, monthly price, one-time fee, linked service categories
SAMPLE_FEATURES = [
    ('Static IP', 'Block of /29 public IPv4 addresses.', '500.00', '0.00',
     [ServiceCategory.DIA.value, ServiceCategory.EBI.value]),
    ('Managed Router', 'CPE supplied, configured and monitored.', '1500.00', '3000.00',
     [ServiceCategory.DIA.value, ServiceCategory.EBI.value, ServiceCategory.PRIVATE_WAN.value]),
    ('DDoS Protection', 'Always-on volumetric attack mitigation.', '4000.00', '0.00',
     [ServiceCategory.DIA.value]),
    ('4G Backup Link', 'Automatic failover over mobile data.', '1200.00', '1500.00',
     [ServiceCategory.EBI.value, ServiceCategory.PRIVATE_WAN.value]),
]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.SALES.value,
                  show_default=True, help='User role')
    @click.option('--full-name', default=None, help='Display name')
    def create_user(email, password, role, full_name):
        """Create a new administrator or sales user."""
        email = email.strip().lower()

        if not re.match(EMAIL_PATTERN, email):
            raise click.BadParameter('Invalid email. Use format: user@example.com', param_hint='--email')

        if len(password) < 6:
            raise click.BadParameter('Password must be at least 6 characters.', param_hint='--password')

        db_session = get_session()
        existing = db_session.query(AppUser).filter(func.lower(AppUser.email) == email).first()
        if existing:
            raise click.ClickException(f'A user with email {email} already exists')

        try:
            user = AppUser(email=email, role=role, full_name=full_name)
            user.set_password(password)
            db_session.add(user)
            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            raise click.ClickException(f'Could not create user: {e}')

        click.echo(click.style(f'User created: {email} ({role}), id {user.id}', fg='green', bold=True))

    @app.cli.command('seed-catalog')
    def seed_catalog():
        """Load sample services, bandwidth tiers and features (skips existing names)."""
        db_session = get_session()
        created = 0

        try:
            services_by_category = {}
            for name, category, description, setup_fee, tiers in SAMPLE_SERVICES:
                service = db_session.query(Service).filter_by(name=name).first()
                if not service:
                    service = Service(
                        name=name,
                        category=category,
                        description=description,
                        setup_fee=Decimal(setup_fee)
                    )
                    for value, unit, price in tiers:
                        service.bandwidth_options.append(
                            BandwidthOption(bandwidth=Decimal(value), unit=unit, monthly_price=Decimal(price))
                        )
                    db_session.add(service)
                    created += 1
                services_by_category[category] = service

            for name, description, monthly, one_time, categories in SAMPLE_FEATURES:
                feature = db_session.query(Feature).filter_by(name=name).first()
                if feature:
                    continue
                feature = Feature(
                    name=name,
                    description=description,
                    monthly_price=Decimal(monthly),
                    one_time_fee=Decimal(one_time)
                )
                feature.services = [services_by_category[c] for c in categories if c in services_by_category]
                db_session.add(feature)
                created += 1

            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            raise click.ClickException(f'Could not seed catalog: {e}')

        click.echo(click.style(f'Catalog seeded ({created} new entries).', fg='green'))

    @app.cli.command('migrate-legacy-quotes')
    @click.option('--dry-run', is_flag=True, help='Report what would change without saving')
    def migrate_legacy_quotes(dry_run):
        """Move linkage stored in quote notes into the linkage columns."""
        db_session = get_session()
        quotes = db_session.query(Quote).filter(Quote.schema_version == LEGACY_SCHEMA_VERSION).all()

        migrated = sum(1 for quote in quotes if migrate_legacy_quote(db_session, quote))

        if dry_run:
            db_session.rollback()
            click.echo(f'Dry run: {migrated} of {len(quotes)} legacy quotes would be migrated.')
            return

        try:
            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            raise click.ClickException(f'Migration failed: {e}')

        click.echo(click.style(f'Migrated {migrated} legacy quotes.', fg='green'))
