"""Authentication routes: login, logout.

Accepts either form fields or a JSON body with ``username`` and ``password``.
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy import func

from questline.models.models import User

bp = Blueprint("auth", __name__)


@bp.route("/login", methods=["POST"])
def login():
    """Log in by username or email (case-insensitive)."""
    data = request.get_json(silent=True) or request.form
    ident = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not ident or not password:
        return jsonify({"error": "username and password required"}), 400
    user = User.query.filter(func.lower(User.username) == ident.lower()).first()
    if not user and "@" in ident:
        user = User.query.filter(func.lower(User.email) == ident.lower()).first()
    if not user or not user.check_password(password):
        logging.info("Failed login for %r", ident)
        return jsonify({"error": "invalid credentials"}), 401
    login_user(user)
    return jsonify({"ok": True, "user": user.to_profile_dict()})


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@bp.route("/api/me")
@login_required
def me():
    return jsonify(current_user.to_profile_dict())
