from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from bagelshop.database import item_db, membership_db, order_db, pending_order_db, promo_code_db
from bagelshop.main import app
from bagelshop.models.promo import PromoCode
from bagelshop.security.cart_tokens import issue_login_token, revoked_tokens
from bagelshop.services.notifications import reset_email_channel
from bagelshop.services.payments import reset_gateway


@pytest.fixture(autouse=True)
def reset_state():
    """Every test starts from the seeded catalog and empty stores"""
    item_db.reset()
    membership_db.clear()
    promo_code_db.clear()
    pending_order_db.clear()
    order_db.clear()
    revoked_tokens.clear()
    reset_gateway()
    reset_email_channel()
    yield
    revoked_tokens.clear()


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def user_token():
    return issue_login_token("user-1")


@pytest.fixture()
def other_user_token():
    return issue_login_token("user-2")


@pytest.fixture()
def admin_token():
    return issue_login_token("admin-1", is_admin=True)


def make_promo(code="SAVE25", perk="25_PERCENT_OFF", **overrides) -> PromoCode:
    fields = {
        "code": code,
        "perk": perk,
        "date_of_expiry": datetime.now(timezone.utc) + timedelta(days=30),
        "total_allowed_uses": None,
        "created_by_user_id": "admin-1",
        "description": f"{code} test code",
        "disabled": False,
    }
    fields.update(overrides)
    return PromoCode(**fields)


@pytest.fixture()
def save25():
    return promo_code_db.create(make_promo("SAVE25", "25_PERCENT_OFF"))


@pytest.fixture()
def save15():
    return promo_code_db.create(make_promo("SAVE15", "15_PERCENT_OFF"))


@pytest.fixture()
def ten_off():
    return promo_code_db.create(make_promo("TENOFF", "$10_OFF"))
