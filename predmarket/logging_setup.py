"""Default logging configuration: debug output with noisy libraries quietened."""

from __future__ import annotations

import logging

MODULE_LEVELS = {
    "aws_config": logging.WARNING,
    "aws_credential_types": logging.WARNING,
    "aws_smithy_client": logging.INFO,
    "aws_smithy_runtime_api": logging.INFO,
    "aws_smithy_runtime": logging.INFO,
    "aws_smithy_http_tower": logging.INFO,
    "hyper": logging.INFO,
    "rustls": logging.INFO,
    "tracing": logging.WARNING,
}


def init_default_debug_logger() -> None:
    """Log everything at debug level except the libraries listed above."""
    logging.basicConfig(format="[%(asctime)s %(levelname)s %(name)s] %(message)s")
    logging.getLogger().setLevel(logging.DEBUG)
    for name, level in MODULE_LEVELS.items():
        logging.getLogger(name).setLevel(level)