"""Cross-origin policy for the web front end."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional, Union

LAMBDA_ENV_VAR = "AWS_LAMBDA_RUNTIME_API"
DEPLOYED_ORIGIN_SUFFIX = "betting.example.com"
LOCAL_ORIGIN_PREFIX = "http://localhost:"
ALLOWED_METHODS = ("CONNECT", "DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT", "TRACE")
ALLOWED_HEADERS = ("authorization", "content-type")


def is_running_on_lambda(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Report whether the process runs inside the serverless runtime."""
    env = os.environ if environ is None else environ
    return LAMBDA_ENV_VAR in env


def is_origin_allowed(
    origin: Union[str, bytes], environ: Optional[Mapping[str, str]] = None
) -> bool:
    """Deployed: only the site's own origin; locally: only localhost origins."""
    if isinstance(origin, bytes):
        origin = origin.decode("latin-1")
    if is_running_on_lambda(environ):
        return origin.endswith(DEPLOYED_ORIGIN_SUFFIX)
    return origin.startswith(LOCAL_ORIGIN_PREFIX)


def cors_headers(
    origin: Optional[Union[str, bytes]], environ: Optional[Mapping[str, str]] = None
) -> dict[str, str]:
    """Response headers granting access to ``origin``, or none if it is refused."""
    if origin is None or not is_origin_allowed(origin, environ):
        return {}
    if isinstance(origin, bytes):
        origin = origin.decode("latin-1")
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ",".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ",".join(ALLOWED_HEADERS),
        "Vary": "origin, access-control-request-method, access-control-request-headers",
    }