import logging
import os
from datetime import timedelta

from flask import Flask, g, render_template, request
from dotenv import load_dotenv

from app.bikeshop.accounts import LoginRateLimiter
from app.bikeshop.config import load_config
from app.bikeshop.db import init_db, teardown_db_session
from app.bikeshop.routes import bp as pages_bp
from app.bikeshop.auth import bp as auth_bp, load_current_user
from app.bikeshop.modules.inventory.admin import bp as inventory_bp
from app.bikeshop.modules.leads.admin import bp as leads_bp
from app.bikeshop.modules.messages.admin import bp as messages_bp
from app.bikeshop.sessions import DatabaseSessionInterface


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=app.config["SESSION_LIFETIME_HOURS"])
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config["LOG_LEVEL"])

    from app.bikeshop.security import csrf_protect, ensure_csrf_token

    @app.context_processor
    def _inject_globals() -> dict:
        return {"csrf_token": ensure_csrf_token, "user": getattr(g, "current_user", None)}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%B %d, %Y") -> str:
        if value is None:
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    if app.config["SESSION_BACKEND"] == "db":
        app.session_interface = DatabaseSessionInterface()
    app.extensions["login_rate_limiter"] = LoginRateLimiter(
        app.config["LOGIN_RATE_LIMIT"], app.config["LOGIN_RATE_WINDOW"]
    )

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(messages_bp)

    # Order matters: the user must be known before the CSRF check runs.
    @app.before_request
    def _load_user_wrapper():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            g.current_user = None
            g.request_id = None
            return None
        return load_current_user()

    app.before_request(csrf_protect)

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html", title="404", errorMessage="Page not found"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        # The page header reads g.current_user through the request session.
        s = getattr(g, "db_session", None)
        if s is not None:
            s.rollback()
        return render_template("errors/500.html", title="Server Error"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
