"""
Decorators
----------

This module defines some decorators that significantly reduce
the boilerplate when handling JSON IO. These are used on the
routes of the system to gracefully serialize, deserialize, and
validate the data coming in and out of the app.

.. note:: Annotating a route with ``@expects(None)`` or ``@returns(None)``
    is purely for clarity and has no effect.
"""

from functools import wraps
from http import HTTPStatus
from json import JSONDecodeError
from typing import Optional, Tuple, Union

from aiohttp import web
from aiohttp.web_urldispatcher import View
from marshmallow import Schema, ValidationError
from marshmallow_jsonschema import JSONSchema

from .jsend import JSendSchema, JSendStatus


def fail_response(message: str, status: HTTPStatus = HTTPStatus.BAD_REQUEST, **data) -> web.Response:
    """Builds a JSend ``fail`` response carrying a user-friendly message."""
    return web.json_response(JSendSchema().dump({
        "status": JSendStatus.FAIL,
        "data": {"message": message, **data}
    }), status=status)


def error_response(message: str, status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR, **data) -> web.Response:
    """Builds a JSend ``error`` response, for failures that are not the client's fault."""
    return web.json_response(JSendSchema().dump({
        "status": JSendStatus.ERROR,
        "message": message,
        "data": data
    }), status=status)


def expects(schema: Optional[Schema], into="data"):
    """
    A decorator that asserts that the JSON data supplied
    to the route validates the given :class:`~marshmallow.Schema`.

    If the data is valid, it is stored on the request under the key
    supplied to the ``into`` parameter, otherwise the client is sent
    the errors along with the JSON schema of what was expected.

    .. code:: python

        @expects(RentalStartSchema(), "my_data")
        async def post(self):
            valid_data = self.request["my_data"]

    :param schema: The schema to validate.
    :param into: The key to store the validated data in.
    """

    if schema is None:
        return lambda x: x

    if not isinstance(schema, Schema):
        raise TypeError(f"Expected a Schema, not {type(schema)}")

    json_schema = JSONSchema().dump(schema)["definitions"][type(schema).__name__]

    def decorator(original_function):

        @wraps(original_function)
        async def new_func(self: View, **kwargs):
            request = self.request

            if not request.body_exists or request.content_type != "application/json":
                return fail_response(
                    f"This route ({request.method}: {request.rel_url}) only accepts JSON.",
                    schema=json_schema
                )

            try:
                request[into] = schema.load(await request.json())
            except JSONDecodeError as err:
                return fail_response("Could not parse supplied JSON.", errors=list(err.args))
            except ValidationError as err:
                return fail_response(
                    "The request did not validate properly.",
                    errors=err.messages, schema=json_schema
                )

            return await original_function(self, **kwargs)

        return new_func

    return decorator


def returns(
    schema: Optional[Schema] = None, return_code: HTTPStatus = HTTPStatus.OK,
    **named_schema: Union[Schema, Tuple[Schema, HTTPStatus]]
):
    """
    A decorator that dumps the data returned from the route through the
    given :class:`~marshmallow.Schema`, meaning as long as this decorator
    is applied to the route, it is possible to return plain python dictionaries.

    When named schemas are given, the route instead returns a tuple of the
    schema name and its data, and the response is built from that schema
    and its return code.

    .. code:: python

        @returns(no_rental=(JSendSchema(), HTTPStatus.NOT_FOUND), rental=JSendSchema.of(rental=RentalSchema()))
        async def get(self):
            if rental is None:
                return "no_rental", {"status": JSendStatus.FAIL, "data": {"message": "No rental."}}
            return "rental", {"status": JSendStatus.SUCCESS, "data": {"rental": rental}}

    A route may also return a ready :class:`~aiohttp.web.StreamResponse`, which is passed through.

    :param schema: The schema that the output data must conform to
    :param return_code: The code to return
    :param named_schema: Schema names, paired with their schema and return values.
    """

    if schema is None and not named_schema:
        return lambda x: x

    schemas = dict(named_schema)
    schemas[None] = (schema, return_code)

    def decorator(original_function):

        @wraps(original_function)
        async def new_func(self: View, **kwargs):
            result = await original_function(self, **kwargs)

            if isinstance(result, web.StreamResponse):
                return result

            schema_name, response_data = (None, result) if schema is not None else result

            try:
                matched_schema = schemas[schema_name]
                if isinstance(matched_schema, tuple):
                    matched_schema, matched_return_code = matched_schema
                else:
                    matched_return_code = return_code
                return web.json_response(matched_schema.dump(response_data), status=matched_return_code)
            except (ValidationError, KeyError, TypeError) as err:
                return error_response(
                    "We tried to send you data back, but it came out wrong.",
                    errors=err.messages if isinstance(err, ValidationError) else [str(arg) for arg in err.args]
                )

        return new_func

    return decorator
