import re
import uuid
from rest_framework import serializers


def validate_phone(value):
    pattern = r"^\+?[\d\s-]{6,20}$"
    if not re.match(pattern, str(value)):
        raise serializers.ValidationError("Invalid phone number format.")
    return value


def is_valid_identifier(value) -> bool:
    """
    True when `value` is a well-formed record identifier (a UUID string).
    Says nothing about whether the record exists.
    """
    if isinstance(value, uuid.UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
