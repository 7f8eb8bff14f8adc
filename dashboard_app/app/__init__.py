from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf import CSRFProtect
from sqlalchemy.exc import SQLAlchemyError
from .config import Config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()

def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(config or Config)

    # Configure logging
    import logging
    app.logger.setLevel(logging.INFO)
    if not any(h.get_name() == "dashboard" for h in app.logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name("dashboard")
        handler.setLevel(logging.INFO)
        formatter = logging.Formatter('[%(asctime)s] %(levelname)s in %(module)s: %(message)s')
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)

    # If using a file-based SQLite URI, ensure the parent directory exists so the DB file can be created.
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if db_uri and db_uri.startswith("sqlite:") and "///" in db_uri and ":memory:" not in db_uri:
        from pathlib import Path
        parent = Path(db_uri.split("///", 1)[1]).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            app.logger.warning("Could not create SQLite directory %s", parent)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    # Flask-Login: restore the User from the id stored in the session
    from .models import User

    @login_manager.user_loader
    def load_user(user_id: str):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "error": "Unauthorized", "category": "unauthorized"}), 401

    csrf.init_app(app)

    @app.after_request
    def set_security_headers(response):
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(exc):
        db.session.rollback()
        app.logger.error("Unhandled database error: %s", exc.__class__.__name__)
        return jsonify({"success": False, "error": "Internal server error", "category": "internal"}), 500

    # Health check endpoint for readiness and liveness checks
    @app.route("/health", methods=["GET"])
    def health_check():
        return ("OK", 200)

    from .auth.routes import auth_bp
    from .organizations.routes import org_bp
    from .api.v1 import api_bp

    # JSON API blueprints authenticate with the session cookie and are exempt from form CSRF
    for bp in (auth_bp, org_bp, api_bp):
        csrf.exempt(bp)
        app.register_blueprint(bp, url_prefix="/api/v1")

    from .cli import invitations_cli, scheduler_cli

    app.cli.add_command(invitations_cli, name="invitations")
    app.cli.add_command(scheduler_cli, name="scheduler")

    return app
