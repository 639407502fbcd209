from unittest.mock import MagicMock

import pytest

from ipam_sync import create_app
from ipam_sync.auth import issue_token
from ipam_sync.config import FlaskConfig, settings
from ipam_sync.core.context import Initiator, TenantContext
from ipam_sync.extensions import db
from ipam_sync.models import ApiConnection, GoogleSheetsConnection, Tenant, User


class TestConfig(FlaskConfig):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def tenant(app):
    tenant = Tenant(name="acme")
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def other_tenant(app):
    tenant = Tenant(name="globex")
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def user(tenant):
    user = User(email="admin@acme.test", name="Admin", current_tenant_id=tenant.id)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def system_user(tenant):
    user = User(email=settings.SYSTEM_USER_EMAIL, name="Sync Bot", current_tenant_id=tenant.id)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def context(tenant, user):
    return TenantContext(tenant_id=tenant.id, user_id=user.id, initiator=Initiator.user(user.id))


@pytest.fixture
def make_connection(tenant, user):
    """Factory for ApiConnection rows of the default tenant."""
    def _make(sync_target="libraries", field_mappings=None, connection_type="rest",
              auth_type=None, **kwargs):
        connection = ApiConnection(
            tenant_id=kwargs.pop("tenant_id", tenant.id),
            name=kwargs.pop("name", f"{sync_target} feed"),
            connection_type=connection_type,
            sync_target=sync_target,
            api_url=kwargs.pop("api_url", "https://cmdb.example.com/api/items"),
            field_mappings=field_mappings if field_mappings is not None else {"name": "n"},
            created_by=user.id,
            **kwargs,
        )
        if auth_type:
            connection.google_sheets = GoogleSheetsConnection(
                spreadsheet_url=connection.api_url,
                spreadsheet_id="sheet123",
                auth_type=auth_type,
            )
        db.session.add(connection)
        db.session.commit()
        return connection

    return _make


def fake_response(status_code=200, json_data=None, text=""):
    """Stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response
