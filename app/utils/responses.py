from flask import jsonify, request

from app.errors import ValidationError


def success_response(data=None, message=None, status_code=200):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status_code


def get_json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
