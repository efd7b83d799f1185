import logging

from flask import g, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    def __init__(self, message, status_code=400, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class BadRequestError(ApiError):
    def __init__(self, message, details=None):
        super().__init__(message, 400, details)


class NotFoundError(ApiError):
    """Ligne absente OU appartenant à un autre appareil (indiscernables)."""

    def __init__(self, message="Not found", details=None):
        super().__init__(message, 404, details)


class UpstreamError(ApiError):
    """Échec du fournisseur d'IA; le texte du fournisseur est renvoyé tel quel."""

    def __init__(self, provider_error, message="Failed to get AI response"):
        super().__init__(message, 500, {"error": provider_error})
        self.provider_error = provider_error


def _json_error(message, status, extra=None):
    body = {"message": message}
    if extra:
        body.update(extra)
    return jsonify(body), status


def describe_validation_error(messages) -> str:
    """Aplatit {champ: [msg, ...]} en une phrase lisible."""
    if isinstance(messages, dict):
        parts = []
        for field, msgs in messages.items():
            if isinstance(msgs, dict):
                parts.append(f"{field}: {describe_validation_error(msgs)}")
            elif isinstance(msgs, list):
                parts.append(f"{field}: {' '.join(str(m) for m in msgs)}")
            else:
                parts.append(f"{field}: {msgs}")
        return "Validation error: " + "; ".join(parts) if parts else "Validation error"
    if isinstance(messages, list):
        return "Validation error: " + " ".join(str(m) for m in messages)
    return f"Validation error: {messages}"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        return _json_error(e.message, e.status_code, e.details)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return _json_error(describe_validation_error(e.messages), 400, {"errors": e.messages})

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        # Ex: 404, 405, 413, 429…
        return _json_error(e.description or "HTTP error", e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logging.getLogger("mina_notes.error").exception(
            "unhandled_exception",
            extra={"request_id": getattr(g, "request_id", "-")},
        )
        return _json_error("Internal server error.", 500)
