"""
Document AI Assistant — Token Verification Tests
=================================================

What we test:
    ✅ Valid tokens yield the caller's id
    ✅ Expired, foreign-signed, wrong-audience and malformed tokens → 401 error
    ✅ Body-supplied user ids must match the token
"""

import uuid
from datetime import timedelta

import jwt
import pytest

from docassist.exceptions import AuthenticationError
from docassist.security import OwnerContext, TokenVerifier

SECRET = "unit-test-secret-with-enough-length"


@pytest.fixture
def verifier():
    return TokenVerifier(secret=SECRET, audience="authenticated", algorithm="HS256")


class TestTokenVerifier:
    def test_valid_token(self, verifier, make_token):
        user_id = uuid.uuid4()

        owner = verifier.verify(make_token(user_id, secret=SECRET))

        assert owner.user_id == user_id

    def test_expired_token(self, verifier, make_token):
        token = make_token(uuid.uuid4(), expires_in=timedelta(minutes=-5), secret=SECRET)

        with pytest.raises(AuthenticationError, match="expired"):
            verifier.verify(token)

    def test_wrong_secret(self, verifier, make_token):
        token = make_token(uuid.uuid4(), secret="someone-elses-secret-of-decent-length")

        with pytest.raises(AuthenticationError):
            verifier.verify(token)

    def test_wrong_audience(self, verifier, make_token):
        token = make_token(uuid.uuid4(), audience="anon", secret=SECRET)

        with pytest.raises(AuthenticationError):
            verifier.verify(token)

    def test_subject_must_be_uuid(self, verifier, make_token):
        with pytest.raises(AuthenticationError):
            verifier.verify(make_token("not-a-uuid", secret=SECRET))

    def test_missing_expiry(self, verifier):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "aud": "authenticated"}, SECRET, algorithm="HS256"
        )

        with pytest.raises(AuthenticationError):
            verifier.verify(token)

    def test_garbage(self, verifier):
        with pytest.raises(AuthenticationError):
            verifier.verify("not.a.jwt")

    def test_unconfigured_secret_rejects_everything(self, make_token):
        with pytest.raises(AuthenticationError, match="not configured"):
            TokenVerifier(secret="").verify(make_token(uuid.uuid4()))


class TestRequireSameUser:
    def test_absent_and_matching_claims(self, owner):
        owner.require_same_user(None)
        owner.require_same_user(str(owner.user_id))

    def test_mismatch(self, owner):
        with pytest.raises(AuthenticationError, match="mismatch"):
            owner.require_same_user(str(uuid.uuid4()))

    def test_frozen(self):
        caller = OwnerContext(user_id=uuid.uuid4())
        with pytest.raises(AttributeError):
            caller.user_id = uuid.uuid4()
