"""Flask JSON API for the propagation service.

Routes live on a blueprint so the app can run behind a reverse proxy under
URL_PREFIX (the proxy must preserve the path).
"""

import logging
import math
import os
from datetime import datetime, timezone

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import load_config
from .errors import PropagationError
from .service import PropagationService

logger = logging.getLogger(__name__)

URL_PREFIX = os.getenv('URL_PREFIX', '')

bp = Blueprint('propagation', __name__)


def _service() -> PropagationService:
    return current_app.config["PROPAGATION_SERVICE"]


def _float_arg(name: str) -> float | None:
    """Query parameter as a finite float, None if missing or invalid."""
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


@bp.errorhandler(PropagationError)
def handle_propagation_error(e: PropagationError):
    if e.status >= 500:
        logger.warning("%s: %s", e.code, e.detail)
    return jsonify(e.to_dict()), e.status


@bp.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error in %s", request.path)
    return jsonify({"error": "propagation_failed", "detail": str(e)}), 500


# ============================================================
# Propagation
# ============================================================

@bp.route("/api/propagation")
def api_propagation():
    """Station MUF/LUF and reference band status."""
    return jsonify(_service().summary())


@bp.route("/api/propagation/path")
def api_propagation_path():
    """Station -> DX path forecast."""
    return jsonify(_service().path_forecast(
        to_lat=_float_arg("toLat"),
        to_lon=_float_arg("toLon"),
        to_grid=(request.args.get("toGrid") or "").strip() or None,
        freq_mhz=_float_arg("freq"),
        power_w=_float_arg("powerW"),
        gain_dbi=_float_arg("gainDbi"),
    ))


# ============================================================
# Map grids
# ============================================================

@bp.route("/api/muf-grid")
def api_muf_grid():
    return jsonify(_service().muf_grid())


@bp.route("/api/band-grid")
def api_band_grid():
    """Band openings from live spots (last 15 min) or the MUF model."""
    return jsonify(_service().band_grid(request.args.get("band")))


@bp.route("/api/band-grid-from-qth")
def api_band_grid_from_qth():
    return jsonify(_service().band_grid_from_qth(_float_arg("band")))


@bp.route("/api/drap-grid")
def api_drap_grid():
    return jsonify(_service().drap_grid())


# ============================================================
# Sun / station
# ============================================================

@bp.route("/api/sun")
def api_sun():
    return jsonify(_service().sun(
        to_lat=_float_arg("toLat"),
        to_lon=_float_arg("toLon"),
        to_grid=(request.args.get("toGrid") or "").strip() or None,
    ))


@bp.route("/api/terminator")
def api_terminator():
    step = _float_arg("step")
    step = step if step is not None and 0.25 <= step <= 10 else 1.0
    return jsonify(_service().terminator(step))


@bp.route("/api/qth")
def api_qth():
    return jsonify(_service().qth())


@bp.route("/health")
def health():
    """Health check endpoint for monitoring."""
    return jsonify({
        "status": "ok",
        "service": "shack-propagation",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200


def create_app(service: PropagationService | None = None, config: dict | None = None,
               url_prefix: str | None = None) -> Flask:
    """Build the Flask app around a propagation service.

    Args:
        service: Preconfigured service (tests inject fakes here)
        config: Config dict used when no service is given (defaults to load_config())
        url_prefix: Mount point, defaults to the URL_PREFIX environment variable
    """
    if service is None:
        service = PropagationService(config if config is not None else load_config())
    prefix = URL_PREFIX if url_prefix is None else url_prefix

    app = Flask(__name__)
    app.config["PROPAGATION_SERVICE"] = service

    # Support running behind reverse proxy
    if prefix:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    app.register_blueprint(bp, url_prefix=prefix or None)
    return app
