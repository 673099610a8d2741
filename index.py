# index.py
from datetime import datetime

from flask import Blueprint, jsonify

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def home():
    return jsonify({"status": "ok", "time": datetime.utcnow().isoformat()})
