"""CORS handling for browser clients of the payment endpoints."""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
ALLOWED_METHODS = ["GET", "POST", "PUT", "OPTIONS"]
PREFLIGHT_MAX_AGE = 86400

_BODY_HEADERS = {"content-length", "content-type"}


class PreflightCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware whose successful preflight is a bodiless 204.

    Rejected preflights keep Starlette's 400 answer.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response

        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        return Response(status_code=204, headers=headers)
