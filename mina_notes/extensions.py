from flask import request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy


def _device_or_address():
    # les quotas suivent l'appareil, sinon l'IP
    return request.headers.get("x-device-id") or get_remote_address()


db = SQLAlchemy()
migrate = Migrate()
cors = CORS()
limiter = Limiter(key_func=_device_or_address)
