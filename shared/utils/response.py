"""Envelope uniforme de respuestas: {success, data?|error?, message?}"""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    return body


def error_response(error: str, code: str) -> dict:
    return {"success": False, "error": error, "code": code}
