# Overview: JSON envelope helpers shared by every blueprint.

from flask import jsonify


def api_ok(data=None, status: int = 200, **extra):
    """Success envelope: {"success": true, "data": ...}."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def api_error(message: str, status: int = 400, **extra):
    """Error envelope: {"success": false, "error": ...}."""
    body = {"success": False, "error": message}
    body.update(extra)
    return jsonify(body), status
