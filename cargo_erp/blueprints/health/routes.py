# cargo_erp/blueprints/health/routes.py

from flask import Blueprint, jsonify

from cargo_erp.services.runtime import get_runtime

health_bp = Blueprint("health", __name__)


@health_bp.route("/")
def health():
    runtime = get_runtime()
    connected = runtime.store.check_connection()
    return jsonify({
        "status": "healthy",
        "database": "connected" if connected else "offline",
        "sync": runtime.status.value,
    })
