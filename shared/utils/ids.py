"""Parseo de identificadores recibidos por la API"""
from typing import Any, Optional
from uuid import UUID


def parse_uuid(value: Any) -> Optional[UUID]:
    """UUID o None si el valor no es un UUID válido"""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError):
        return None
