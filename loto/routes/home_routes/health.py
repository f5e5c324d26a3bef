# loto/routes/home_routes/health.py
from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health_bp", __name__, url_prefix="/health")


@health_bp.get("/ping")
def ping():
    return jsonify({"ok": True, "service": current_app.config.get("LOTO_PRODUCT_NAME")})
