"""
Middleware
----------
"""
from http import HTTPStatus

from aiohttp.abc import Request
from aiohttp.web_middlewares import middleware

from kiosk import logger
from kiosk.serializer.decorators import fail_response
from kiosk.service.verify_token import verify_token, TokenVerificationError


@middleware
async def validate_token_middleware(request: Request, handler):
    """
    Ensures that any Authorization header given to the application is valid,
    and stores its subject on the request as the "token".

    An invalid token is turned away before it reaches the views.
    """

    if "Authorization" in request.headers:
        try:
            request["token"] = verify_token(request)
        except TokenVerificationError as error:
            logger.debug("Rejected token on %s %s: %s", request.method, request.rel_url, error)
            return fail_response(
                "Supplied authorization token is invalid.",
                HTTPStatus.UNAUTHORIZED,
                errors=[str(error)]
            )

    return await handler(request)
