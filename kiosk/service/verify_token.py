"""
Verify Token
------------

The token verification strategies for staff sessions. Staff sign in with the
external identity provider, which hands the kiosk a bearer token whose subject
is the ``auth_id`` of a :class:`~kiosk.models.Staff` row.
"""
from abc import ABC, abstractmethod

from aiohttp.web_request import Request
from jose import jwt, ExpiredSignatureError, JWTError


class TokenVerificationError(Exception):
    pass


class TokenVerifier(ABC):

    @abstractmethod
    def verify_token(self, token):
        """
        Given a token, verifies it, returning the subject of the token.

        :raises TokenVerificationError: When the provided token is invalid.
        """


class JWTVerifier(TokenVerifier):
    """
    Verifies an HS256 session token signed with the shared secret.
    """

    def __init__(self, secret: str, audience: str = "authenticated"):
        if not secret:
            raise ValueError("A secret is required to verify session tokens.")
        self.secret = secret
        self.audience = audience

    def verify_token(self, token, verify_exp=True) -> str:
        if not isinstance(token, str):
            raise TypeError(f"Token must be of type string, not {type(token)}")

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms='HS256',
                audience=self.audience,
                options={'verify_exp': verify_exp}
            )
        except ExpiredSignatureError as e:
            raise TokenVerificationError("Token is expired.") from e
        except JWTError as e:
            raise TokenVerificationError("Token is invalid.") from e

        subject = claims.get("sub")
        if not subject:
            raise TokenVerificationError("Token has no subject.")

        return subject


class DummyVerifier(TokenVerifier):
    """
    Verifies a dummy token, where any hex string is its own subject.
    """

    def verify_token(self, token: str) -> str:
        try:
            bytes.fromhex(token)
        except (ValueError, TypeError):
            raise TokenVerificationError("Not a valid hex string.")

        return token


def verify_token(request: Request):
    """
    Checks a request for the existence of a valid Authorization header.

    :param request: The request to check.
    :return: The subject of the token.
    :raises TokenVerificationError: When the Authorization header is invalid.
    """
    if "Authorization" not in request.headers:
        raise TokenVerificationError("You must supply your session token.")

    if not request.headers["Authorization"].startswith("Bearer "):
        raise TokenVerificationError("The Authorization header must be of the format \"Bearer $TOKEN\".")

    return request.app["token_verifier"].verify_token(request.headers["Authorization"][7:])
