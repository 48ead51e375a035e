from datetime import datetime, timedelta, timezone

from config.app_config import AppConfig
from domain.value_objects import ValidationFailure
from dtos.request.admin_request import AdminLoginRequest
from services.request_validators import AdminLoginValidator
from services.token_service import issue_token, verify_token


def test_admin_login_validator_accepts_valid_request():
    validator = AdminLoginValidator(AppConfig(token_key="secret"))

    assert validator.validate(AdminLoginRequest(UserName="admin", Password="pass123")) == []


def test_admin_login_validator_flags_missing_config():
    validator = AdminLoginValidator(AppConfig())

    failures = validator.validate(AdminLoginRequest(UserName="admin", Password="pass123"))

    assert failures == [ValidationFailure("UserName", "config didn't resolve correctly!")]


def test_validator_is_reusable():
    validator = AdminLoginValidator(AppConfig(token_key="secret"))

    assert len(validator.validate(AdminLoginRequest())) == 2
    assert validator.validate(AdminLoginRequest(user_name="admin", password="pass123")) == []


def test_token_round_trip_and_tampering():
    secret = "a signing key that is long enough for HS256"
    now = datetime.now(timezone.utc)
    token, expires_at = issue_token("admin", ["a"], secret, now=now)

    assert expires_at == now.replace(microsecond=0) + timedelta(hours=4)
    assert token.count(".") == 2
    claims = verify_token(token, secret)
    assert claims["sub"] == "admin"
    assert claims["permissions"] == ["a"]
    assert verify_token(token, "another key that is long enough for HS256") is None
    assert verify_token(token + "0", secret) is None


def test_expired_token_is_rejected():
    secret = "a signing key that is long enough for HS256"
    issued = datetime.now(timezone.utc) - timedelta(hours=5)
    token, _ = issue_token("admin", [], secret, now=issued)

    assert verify_token(token, secret) is None
