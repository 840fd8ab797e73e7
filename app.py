# ======================================
# Flask Backend – Dhadkan Heart Screening
# ======================================

import logging
import os

from flask import Flask, request
from flask_cors import CORS

from auth import auth_bp
from config import Config
from dashboard import dashboard_bp
from doctors import doctors_bp
from errors import register_error_handlers
from models import db
from reports import reports_bp
from screenings import screenings_bp

BLUEPRINTS = (auth_bp, doctors_bp, screenings_bp, reports_bp, dashboard_bp)


def _ensure_sqlite_dir(uri):
    # sqlite:///<path> needs its directory to exist before create_all
    prefix = 'sqlite:///'
    if uri.startswith(prefix) and len(uri) > len(prefix):
        directory = os.path.dirname(uri[len(prefix):])
        if directory:
            os.makedirs(directory, exist_ok=True)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Hindi enum values and messages go out as-is
    app.json.ensure_ascii = False
    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    CORS(app)

    # ---------- Extensions ----------
    _ensure_sqlite_dir(app.config['SQLALCHEMY_DATABASE_URI'])
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    db.init_app(app)

    # ---------- Routes ----------
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)
    register_error_handlers(app)

    @app.before_request
    def log_request():
        app.logger.debug('Method: %s, Path: %s, Content-Type: %s',
                         request.method, request.path, request.content_type)

    # Ensure tables exist on startup (works with flask run or direct execution)
    with app.app_context():
        db.create_all()

    return app


# ======================================
# Entry point
# ======================================

if __name__ == '__main__':
    create_app().run(debug=True)
