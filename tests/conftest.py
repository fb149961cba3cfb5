import os
import tempfile
import pytest

from config import TestingConfig
from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import (
    InventoryItem, Location, MeetingRoom, Package, StockLevel, User
)

PASSWORDS = {
    'admin': 'admin-pass',
    'manager': 'manager-pass',
    'staff': 'staff-pass',
    'customer': 'customer-pass',
    'member': 'member-pass',
    'locked': 'locked-pass',
}


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    # Create a temporary file to isolate the database for each test
    db_fd, db_path = tempfile.mkstemp()

    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{db_path}'

    app = create_app(Config)

    with app.app_context():
        init_test_data()

    yield app

    with app.app_context():
        db.engine.dispose()
    # Close and remove the temporary database
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def ctx(app):
    """Run the test body inside an application context."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def login(app):
    """Factory returning a test client logged in as the given user."""
    def _login(username):
        client = app.test_client()
        response = client.post('/auth/login', json={
            'username': username,
            'password': PASSWORDS[username]
        })
        assert response.status_code == 200, response.get_json()
        return client
    return _login


@pytest.fixture
def admin_client(login):
    return login('admin')


@pytest.fixture
def manager_client(login):
    return login('manager')


@pytest.fixture
def staff_client(login):
    return login('staff')


@pytest.fixture
def customer_client(login):
    return login('customer')


def get_user(username):
    return User.query.filter_by(username=username).one()


def get_location(code):
    return Location.query.filter_by(code=code).one()


def get_item(name='Office Chair'):
    return InventoryItem.query.filter_by(name=name).one()


def init_test_data():
    """Initialize test data."""
    locations = {loc.code: loc for loc in Location.get_predefined_locations()}

    package = Package(name='Standard', monthly_hours_limit=20)
    db.session.add(package)

    for username, role in (('admin', 'admin'), ('manager', 'manager'),
                           ('staff', 'staff'), ('customer', 'customer'),
                           ('member', 'customer'), ('locked', 'customer')):
        user = User(
            username=username,
            email=f'{username}@test.com',
            full_name=username.title(),
            role=role,
            branch_id=locations['branch-A'].id
        )
        if role == 'customer':
            user.package = package
        if username == 'locked':
            user.account_status = 'locked'
        user.set_password(PASSWORDS[username])
        db.session.add(user)

    # I1: 10 chairs in the store room
    chair = InventoryItem(
        name='Office Chair',
        category='moveable',
        unit='pieces',
        unit_price=50,
        minimum_stock=5,
        maximum_stock=40
    )
    coffee = InventoryItem(
        name='Coffee Beans',
        category='consumable',
        unit='kg',
        unit_price='12.50',
        minimum_stock=3
    )
    db.session.add_all([chair, coffee])
    db.session.flush()

    db.session.add(StockLevel(
        item_id=chair.id,
        location_id=locations['store-room-1'].id,
        quantity=10
    ))
    db.session.add(StockLevel(
        item_id=coffee.id,
        location_id=locations['branch-A'].id,
        quantity=2
    ))

    db.session.add(MeetingRoom(
        name='Board Room',
        branch_id=locations['branch-A'].id,
        capacity=8
    ))

    db.session.commit()
