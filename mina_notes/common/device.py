"""Résolution de l'identité appareil via l'en-tête ``x-device-id``.

L'identifiant est opaque, généré côté client et sert de jeton porteur:
aucune signature, aucune expiration.
"""
from flask import current_app, g, request

from mina_notes.common.errors import BadRequestError

DEVICE_HEADER = "x-device-id"


def resolve_device_id(headers, max_length: int = 128) -> str:
    raw = headers.get(DEVICE_HEADER)
    device_id = (raw or "").strip()
    if not device_id:
        raise BadRequestError(f"Missing {DEVICE_HEADER} header")
    if len(device_id) > max_length:
        raise BadRequestError(f"Invalid {DEVICE_HEADER} header")
    return device_id


def current_device_id() -> str:
    device_id = getattr(g, "device_id", None)
    if device_id is None:
        # appel hors d'une route /api/*
        device_id = resolve_device_id(request.headers, current_app.config.get("DEVICE_ID_MAX_LENGTH", 128))
        g.device_id = device_id
    return device_id


def register_device_scoping(app, prefix: str = "/api/"):
    @app.before_request
    def _require_device_id():
        # preflight CORS: pas d'en-tête custom envoyé
        if request.method == "OPTIONS":
            return None
        if not (request.path or "").startswith(prefix):
            return None
        g.device_id = resolve_device_id(request.headers, app.config.get("DEVICE_ID_MAX_LENGTH", 128))
        return None
