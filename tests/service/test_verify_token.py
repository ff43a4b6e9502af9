from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from kiosk.service.verify_token import DummyVerifier, JWTVerifier, TokenVerificationError, verify_token

SECRET = "counter-secret"


def make_token(secret=SECRET, audience="authenticated", expires_in=timedelta(hours=1), **claims):
    claims.setdefault("sub", "0a1b2c3d")
    claims["aud"] = audience
    claims["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def jwt_verifier():
    return JWTVerifier(SECRET)


@pytest.fixture
def dummy_verifier():
    return DummyVerifier()


class TestJWTVerifier:

    def test_verify(self, jwt_verifier):
        """Assert that a good token gives back its subject."""
        assert jwt_verifier.verify_token(make_token()) == "0a1b2c3d"

    @pytest.mark.parametrize("token", [
        make_token(secret="someone-else"),
        make_token(audience="anon"),
        "not.a.token",
        "",
    ])
    def test_verify_bad_token(self, jwt_verifier, token):
        with pytest.raises(TokenVerificationError):
            jwt_verifier.verify_token(token)

    def test_verify_expired(self, jwt_verifier):
        token = make_token(expires_in=timedelta(hours=-1))
        with pytest.raises(TokenVerificationError, match="expired"):
            jwt_verifier.verify_token(token)
        assert jwt_verifier.verify_token(token, verify_exp=False) == "0a1b2c3d"

    def test_verify_no_subject(self, jwt_verifier):
        with pytest.raises(TokenVerificationError, match="subject"):
            jwt_verifier.verify_token(make_token(sub=""))

    @pytest.mark.parametrize("token", [None, 213, False])
    def test_verify_not_a_string(self, jwt_verifier, token):
        with pytest.raises(TypeError):
            jwt_verifier.verify_token(token)

    def test_secret_required(self):
        with pytest.raises(ValueError):
            JWTVerifier("")


class TestDummyVerifier:

    @pytest.mark.parametrize(('token', 'passes'), [
        ("abcd", True),
        (1234, False),
        (None, False),
        ("xp123", False),
        ("", True)
    ])
    def test_verify(self, dummy_verifier, token, passes: bool):
        try:
            dummy_verifier.verify_token(token)
            assert passes
        except TokenVerificationError:
            assert not passes


class TestVerifyRequest:

    @staticmethod
    def request(headers):
        return SimpleNamespace(headers=headers, app={"token_verifier": DummyVerifier()})

    def test_bearer_token(self):
        assert verify_token(self.request({"Authorization": "Bearer abcd"})) == "abcd"

    def test_missing_header(self):
        with pytest.raises(TokenVerificationError, match="supply"):
            verify_token(self.request({}))

    def test_wrong_scheme(self):
        with pytest.raises(TokenVerificationError, match="Bearer"):
            verify_token(self.request({"Authorization": "Basic abcd"}))
