import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message, details=None, status=None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.status = status

    def to_payload(self):
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        if self.status is not None:
            body.update(self.status.as_json())
        return body


class ValidationError(ProxyError):
    """A required request field is missing."""
    status_code = 400


class QuotaExceededError(ProxyError):
    """The user has used every attempt in the current window."""
    status_code = 403

    def __init__(self, status):
        super().__init__(
            "You have reached your limit. Please try again after the timer is finished.",
            status=status,
        )


class UpstreamError(ProxyError):
    """The image generation API failed or answered with something unusable."""
    status_code = 500


class StorageError(ProxyError):
    status_code = 500

    def __init__(self, cause=None):
        super().__init__("Internal server error")
        self.cause = cause


def install_error_handlers(app):
    @app.errorhandler(ProxyError)
    def _proxy_error(e):
        if e.status_code >= 500:
            logging.error("%s %s failed: %s (%s)", request.method, request.path, e.message,
                          getattr(e, "cause", None) or e.details)
        else:
            logging.warning("%s %s rejected: %s", request.method, request.path, e.message)
        return jsonify(e.to_payload()), e.status_code

    @app.errorhandler(Exception)
    def _unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logging.exception("%s %s error", request.method, request.path)
        return jsonify({"error": "Internal server error", "details": str(e)}), 500
