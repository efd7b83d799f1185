# mina_notes/common/logging.py
import logging, sys, time, uuid
from pythonjsonlogger import jsonlogger
from flask import g, request

# identifiants de ressource repris des paramètres d'URL
_RESOURCE_ARGS = ("note_id", "chat_id", "attachment_id")


def setup_json_logging(app):
    # Root logger en INFO (DEBUG en dev via app.debug), LOG_LEVEL prioritaire
    level = app.config.get("LOG_LEVEL") or (logging.DEBUG if app.debug else logging.INFO)
    root = logging.getLogger()
    root.handlers = []  # nettoie
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    fmt = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(request_id)s %(device_id)s %(method)s %(path)s %(status)s %(latency_ms)s",
        static_fields={"service": app.config.get("SERVICE_NAME", "mina-notes")},
    )
    handler.setFormatter(fmt)
    root.addHandler(handler)


def _resource_ids() -> dict:
    args = request.view_args or {}
    return {name: args[name] for name in _RESOURCE_ARGS if name in args}


def register_request_logging(app):
    @app.before_request
    def _assign_request_id_and_start_timer():
        # request id: X-Request-Id entrant ou généré
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        g._start_time = time.perf_counter()

    @app.after_request
    def _log_request(resp):
        latency = int((time.perf_counter() - getattr(g, "_start_time", time.perf_counter())) * 1000)

        # expose le request id au client
        resp.headers.setdefault("X-Request-Id", getattr(g, "request_id", "-"))

        # sondes et fichiers servis: DEBUG pour ne pas noyer les appels API
        quiet = request.path in ("/healthz", "/readyz") or request.path.startswith("/uploads/")
        logging.getLogger("mina_notes.request").log(
            logging.DEBUG if quiet else logging.INFO,
            "http_request",
            extra={
                "request_id": getattr(g, "request_id", "-"),
                "device_id": getattr(g, "device_id", "-"),
                "method": request.method,
                "path": request.path,
                "endpoint": request.endpoint,
                "status": resp.status_code,
                "latency_ms": latency,
                "content_length": request.content_length,
                **_resource_ids(),
            },
        )
        return resp

    @app.teardown_request
    def _teardown(exc):
        if exc:
            logging.getLogger("mina_notes.error").error(
                "request_teardown_with_exception",
                exc_info=exc,
                extra={
                    "request_id": getattr(g, "request_id", "-"),
                    "device_id": getattr(g, "device_id", "-"),
                    "endpoint": request.endpoint,
                },
            )
