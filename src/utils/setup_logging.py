"""
Logging setup for the Firebase Cloud Function.

Deployed functions get their stdout shipped to Cloud Logging, so the root
logger prints one line per record with a level prefix. Under the local
emulator the standard stream handler is used instead.

Import and call once from main.py.
"""

import logging
import os
import sys


class CloudLoggingHandler(logging.Handler):
    """Write formatted records to stdout, where Cloud Functions picks them up."""

    def emit(self, record):
        try:
            msg = self.format(record)
            print(msg, file=sys.stdout)
        except Exception:
            self.handleError(record)


class CloudLoggingFormatter(logging.Formatter):
    def format(self, record):
        message = super().format(record)
        return f"{record.levelname}: {message}"


def is_emulator() -> bool:
    return bool(
        os.getenv("FUNCTIONS_EMULATOR")
        or os.getenv("FIREBASE_AUTH_EMULATOR_HOST")
        or os.getenv("FIRESTORE_EMULATOR_HOST")
    )


def setup_cloud_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure the root logger for Cloud Functions or the local emulator.

    Returns:
        The configured root logger.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler: logging.Handler
    if is_emulator():
        handler = logging.StreamHandler(sys.stdout)
        formatter: logging.Formatter = logging.Formatter("%(levelname)-8s %(name)s: %(message)s")
    else:
        handler = CloudLoggingHandler()
        formatter = CloudLoggingFormatter("%(name)s %(message)s")

    handler.setFormatter(formatter)
    handler.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    root_logger.debug("Logging configured (emulator=%s)", is_emulator())
    return root_logger
