import os
from flask import Flask, jsonify, request
from flask_limiter import RateLimitExceeded
from dotenv import load_dotenv
from sqlalchemy import text

from .config import DevConfig, ProdConfig, TestConfig
from .extensions import db, migrate, cors, limiter
from .common.errors import register_error_handlers
from .common.logging import setup_json_logging, register_request_logging
from .common.device import register_device_scoping


def create_app(overrides=None, text_generator=None):
    # Charge .env si présent (dev)
    load_dotenv()

    app = Flask(__name__)

    # Choix config selon env
    env = os.getenv("APP_ENV") or os.getenv("FLASK_ENV", "development")
    if env in ("test", "testing"):
        app.config.from_object(TestConfig)
    elif env == "production":
        app.config.from_object(ProdConfig)
    else:
        app.config.from_object(DevConfig)

    # surcharges appliquées AVANT l'init des extensions (URI DB, dossier d'upload...)
    if overrides:
        app.config.update(overrides)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)

    setup_json_logging(app)
    register_request_logging(app)
    register_device_scoping(app)

    # --- Helpers ---
    def _csv(value, default_if_empty):
        """Convertit une chaîne CSV en liste, sinon retourne la valeur telle quelle ou un défaut."""
        if value is None:
            return default_if_empty
        if isinstance(value, str) and "," in value:
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default_if_empty
        return value

    # --- CORS: whitelist + headers ---
    origins = _csv(app.config.get("CORS_ORIGINS", "*"), "*")
    allow_headers = _csv(app.config.get("CORS_ALLOW_HEADERS"), ["Content-Type", "x-device-id"])
    expose_headers = _csv(app.config.get("CORS_EXPOSE_HEADERS"), ["Content-Type"])

    cors.init_app(app, resources={
        r"/api/*": {
            "origins": origins,
            "allow_headers": allow_headers,
            "expose_headers": expose_headers,
            "supports_credentials": False,
        }
    })

    # --- Limiter: storage & défaut configurable ---
    limiter.init_app(app)   # PAS d'arguments ici ; Limiter lit RATELIMIT_* depuis app.config

    # Importer les modèles pour que Flask-Migrate/Alembic voie les tables
    from .notes import models as notes_models              # noqa: F401
    from .chats import models as chats_models              # noqa: F401
    from .attachments import models as attachments_models  # noqa: F401

    # Handlers d'erreurs JSON uniformes
    register_error_handlers(app)

    # Fournisseur IA (remplaçable en test)
    from .ai.provider import init_text_generator
    init_text_generator(app, text_generator)

    # --- Security headers (UN SEUL after_request) ---
    @app.after_request
    def set_security_headers(resp):
        path = request.path or ""

        if path.startswith("/uploads/"):
            # images servies au client
            resp.headers["Content-Security-Policy"] = "default-src 'none'; img-src 'self'; frame-ancestors 'none'"
        else:
            # API JSON: CSP très restrictif (pas d'HTML attendu)
            resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
        resp.headers["X-Frame-Options"] = "DENY"

        # Headers communs
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "no-referrer"

        # HSTS uniquement si HTTPS (prod / reverse-proxy)
        if (env == "production" or app.config.get("ENFORCE_HTTPS")) and (
            request.is_secure or request.headers.get("X-Forwarded-Proto", "") == "https"
        ):
            resp.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"

        return resp

    # --- 429 Rate limit JSON ---
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e):
        return jsonify({"message": "Rate limit exceeded."}), 429

    # --- Blueprints ---
    from .notes.routes import bp as notes_bp
    app.register_blueprint(notes_bp, url_prefix="/api/notes")

    from .chats.routes import bp as chats_bp
    app.register_blueprint(chats_bp, url_prefix="/api")

    from .attachments.routes import bp as attachments_bp, files_bp
    app.register_blueprint(attachments_bp, url_prefix="/api")
    app.register_blueprint(files_bp)

    from .ai.routes import bp as ai_bp
    app.register_blueprint(ai_bp, url_prefix="/api")

    from .docs.routes import bp as docs_bp
    app.register_blueprint(docs_bp)

    # Liveness probe (ping DB simple)
    @app.get("/healthz")
    def healthz():
        db_status = "up"
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            db_status = "down"
        return jsonify({
            "status": "ok",
            "env": env,
            "db": db_status
        })

    # Readiness probe (DB + Redis si configuré)
    @app.get("/readyz")
    def readyz():
        status = {"db": "down", "redis": "n/a", "uploads": "down"}
        ok = True

        # DB
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            status["db"] = "up"
        except Exception:
            ok = False
            status["db"] = "down"

        # Dossier d'upload inscriptible
        folder = app.config["UPLOAD_FOLDER"]
        try:
            os.makedirs(folder, exist_ok=True)
            if os.access(folder, os.W_OK):
                status["uploads"] = "up"
            else:
                ok = False
        except OSError:
            ok = False

        # Redis (uniquement si RATELIMIT_STORAGE_URI utilise redis)
        try:
            uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
            if uri.startswith(("redis://", "rediss://")):
                import redis  # import tardif
                r = redis.from_url(uri)
                r.ping()
                status["redis"] = "up"
            else:
                status["redis"] = "n/a"
        except Exception:
            ok = False
            status["redis"] = "down"

        status["status"] = "ok" if ok else "error"
        return jsonify(status), (200 if ok else 503)

    return app
