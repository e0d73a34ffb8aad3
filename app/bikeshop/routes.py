from flask import Blueprint, g, redirect, render_template, url_for

from app.bikeshop.gate import require_session

bp = Blueprint("pages", __name__)


@bp.get("/")
def root():
    if g.current_user:
        return redirect(url_for("pages.index"))
    return redirect(url_for("auth.login_get"))


@bp.get("/index")
@require_session
def index():
    return render_template("pages/index.html", title="Home Page")


@bp.get("/dashboard")
@require_session
def dashboard():
    return render_template("pages/dashboard.html", title="Dashboard")


@bp.get("/about")
@require_session
def about():
    return render_template("pages/about.html", title="About Page")


@bp.get("/help")
@require_session
def help_page():
    return render_template("pages/help.html", title="Help Page")


@bp.get("/feedback")
@require_session
def feedback():
    return render_template("pages/feedback.html", title="Feedback Page")


@bp.get("/services")
@require_session
def services():
    return render_template("pages/services.html", title="Services Page")


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """Fast liveness probe. No DB access."""
    return "ok", 200
