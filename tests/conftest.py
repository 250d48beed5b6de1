import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-gateway-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REALTIME_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.supabase_client import get_supabase, get_auth_supabase, get_service_supabase
from app.core.dependencies import get_current_user, get_optional_user
from app.modules.notifications import hub
from tests.fakes import FakeSupabase

CUSTOMER_ID = "user-1"
OTHER_CUSTOMER_ID = "user-2"
ADMIN_ID = "admin-1"


def make_product(product_id, name, price=100.0, stock=10, category="atta", is_active=True, **extra):
    row = {
        "id": product_id,
        "name": name,
        "price": price,
        "stock": stock,
        "category": category,
        "is_active": is_active,
        "discount": 0,
        "created_at": extra.pop("created_at", "2024-01-01T00:00:00"),
    }
    row.update(extra)
    return row


@pytest.fixture
def db():
    return FakeSupabase({
        "products": [
            make_product("p-atta", "Atta - 10 KG", price=400.0, stock=5, weight="10kg",
                         specifications={"Weight": "10 KG", "Grain": "Wheat"},
                         created_at="2024-01-01T00:00:01"),
            make_product("p-basmati", "Basmati Chawal", price=85.0, stock=None, category="chawal",
                         sub_category="basmati_chawal", specifications={"Grain": "Long", "Aroma": "High"},
                         created_at="2024-01-01T00:00:02"),
            make_product("p-chokar", "Chokar - 35 KG", price=875.0, stock=0, category="chokar",
                         weight="35kg", created_at="2024-01-01T00:00:03"),
            make_product("p-hidden", "Kapila - Old Stock", price=500.0, stock=3, category="kapila",
                         is_active=False, created_at="2024-01-01T00:00:04"),
        ],
        "user_roles": [
            {"id": "role-1", "user_id": ADMIN_ID, "role": "admin"},
            {"id": "role-2", "user_id": CUSTOMER_ID, "role": "user"},
        ],
        "profiles": [
            {"id": CUSTOMER_ID, "username": "ramesh", "email": "ramesh@example.com", "phone": "9876543210",
             "saved_addresses": []},
            {"id": ADMIN_ID, "username": "admin", "email": "admin@example.com", "saved_addresses": None},
        ],
        "orders": [],
        "order_items": [],
    })


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_auth_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    hub.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    hub.reset()


@pytest.fixture
def login():
    """Call with a user id to authenticate subsequent requests as that user"""
    def _login(user_id, email=None):
        user = {"id": user_id, "email": email or f"{user_id}@example.com", "user_metadata": {}}
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_optional_user] = lambda: user
        return user
    return _login
