import pytest
from decimal import Decimal

from PIL import Image

from quotegen import create_app
from quotegen.database import get_session, create_all, drop_all
from quotegen.models import (
    AppUser, UserRole, Service, BandwidthOption, Feature, Customer
)


class FakeRasterizer:
    """In-memory stand-in for the browser rasterizer."""

    def __init__(self, height=2500, width=794, fail_on=None, error=None):
        self.height = height
        self.width = width
        self.fail_on = fail_on
        self.error = error
        self.calls = []
        self.html = None
        self.scale = None

    def _record(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise self.error

    def load(self, html, scale=2):
        self.html = html
        self.scale = scale
        self._record('load')

    def apply_export_layout(self):
        self._record('apply_export_layout')

    def wait_for_assets(self, timeout):
        self._record('wait_for_assets')

    def capture(self):
        self._record('capture')
        return Image.new('RGB', (self.width, self.height), 'white')

    def restore_layout(self):
        self._record('restore_layout')

    def close(self):
        self._record('close')


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database."""
    app = create_app('config.TestConfig')
    with app.app_context():
        create_all()
    yield app
    get_session().remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def admin_user(session):
    user = AppUser(email='admin@quotegen.test', full_name='Ada Admin', role=UserRole.ADMIN.value, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def sales_user(session):
    user = AppUser(email='sales@quotegen.test', full_name='Sam Sales', role=UserRole.SALES.value, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


def login(client, user):
    """Put a user id in the signed session cookie."""
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
    return client


@pytest.fixture(scope='function')
def admin_client(client, admin_user):
    return login(client, admin_user)


@pytest.fixture(scope='function')
def sales_client(client, sales_user):
    return login(client, sales_user)


@pytest.fixture(scope='function')
def dia_service(session):
    """Dedicated Internet Access with a 20 Mbps tier and a hidden 1 Gbps tier."""
    service = Service(name='Dedicated Internet Access', category='DIA', setup_fee=Decimal('5000.00'))
    service.bandwidth_options.append(
        BandwidthOption(bandwidth=Decimal('20'), unit='Mbps', monthly_price=Decimal('20000.00'))
    )
    service.bandwidth_options.append(
        BandwidthOption(bandwidth=Decimal('1'), unit='Gbps', monthly_price=Decimal('150000.00'), is_available=False)
    )
    session.add(service)
    session.commit()
    return service


@pytest.fixture(scope='function')
def bandwidth_20(dia_service):
    return next(b for b in dia_service.bandwidth_options if b.unit == 'Mbps')


@pytest.fixture(scope='function')
def bandwidth_hidden(dia_service):
    return next(b for b in dia_service.bandwidth_options if not b.is_available)


@pytest.fixture(scope='function')
def static_ip(session, dia_service):
    feature = Feature(name='Static IP', monthly_price=Decimal('500.00'), one_time_fee=Decimal('0.00'))
    feature.services.append(dia_service)
    session.add(feature)
    session.commit()
    return feature


@pytest.fixture(scope='function')
def managed_router(session):
    """Feature not linked to any service."""
    feature = Feature(name='Managed Router', monthly_price=Decimal('1500.00'), one_time_fee=Decimal('3000.00'))
    session.add(feature)
    session.commit()
    return feature


@pytest.fixture(scope='function')
def customer(session):
    customer = Customer(
        company_name='Acme Ltd',
        contact_name='Jane Doe',
        email='jane@acme.mu',
        phone='+230 5555 1234',
        address='12 Royal Road\nCurepipe',
        city='Curepipe',
        country='Mauritius'
    )
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def fake_rasterizer(monkeypatch):
    """Route PDF exports through an in-memory rasterizer."""
    rasterizer = FakeRasterizer()
    monkeypatch.setattr('quotegen.blueprints.quotes.get_rasterizer', lambda config: rasterizer)
    return rasterizer


@pytest.fixture
def make_rasterizer():
    """Factory for FakeRasterizer instances with custom behaviour."""
    return FakeRasterizer
