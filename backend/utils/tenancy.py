from fastapi import Header
from exceptions import ValidationError


def get_organization_id(x_organization_id: str = Header(None)) -> str:
    if not x_organization_id or not x_organization_id.strip():
        raise ValidationError("Organization ID is required", code="MISSING_ORGANIZATION")
    return x_organization_id.strip()
