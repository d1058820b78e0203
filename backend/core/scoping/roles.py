import logging
from copy import deepcopy
from typing import Iterable

from django.conf import settings
from django.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_USER = "USER"
ROLE_VIEWER = "VIEWER"

VALID_ROLES = frozenset((ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, ROLE_VIEWER))
VALID_METHODS = frozenset(("GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE", "*"))

# Elevated roles see every asset and manage access grants.
ELEVATED_ROLES = frozenset((ROLE_ADMIN, ROLE_MANAGER))

READ_ROLES = VALID_ROLES
WRITE_ROLES = frozenset((ROLE_ADMIN, ROLE_MANAGER, ROLE_USER))
ADMIN_ROLES = frozenset((ROLE_ADMIN,))
NO_ROLES = frozenset()

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")


def build_role_matrix(read=READ_ROLES, create=WRITE_ROLES, update=WRITE_ROLES, delete=WRITE_ROLES):
    """Role matrix keyed by HTTP method; PUT and PATCH share the ``update`` roles."""

    matrix = {method: frozenset(read) for method in SAFE_METHODS}
    matrix["POST"] = frozenset(create)
    matrix["PUT"] = matrix["PATCH"] = frozenset(update)
    matrix["DELETE"] = frozenset(delete)
    return matrix


def _read_only(read=READ_ROLES):
    return build_role_matrix(read, NO_ROLES, NO_ROLES, NO_ROLES)


DEFAULT_RESOURCE_ROLE_MATRICES = {
    "assets": build_role_matrix(),
    "asset_import": build_role_matrix(),
    "asset_audit": _read_only(ELEVATED_ROLES),
    "viewport": _read_only(),
    "clusters": _read_only(),
    "stats": _read_only(),
    "regions": _read_only(),
    "region_assignments": build_role_matrix(READ_ROLES, ELEVATED_ROLES, ELEVATED_ROLES, ELEVATED_ROLES),
    "temporary_access": build_role_matrix(ELEVATED_ROLES, ELEVATED_ROLES, NO_ROLES, ELEVATED_ROLES),
    "temporary_access_cleanup": build_role_matrix(NO_ROLES, ELEVATED_ROLES, NO_ROLES, NO_ROLES),
    "audit": _read_only(ELEVATED_ROLES),
    "audit_purge": build_role_matrix(NO_ROLES, ADMIN_ROLES, NO_ROLES, NO_ROLES),
}

DEFAULT_ROLE_MATRIX = build_role_matrix()
KNOWN_RESOURCES = frozenset(DEFAULT_RESOURCE_ROLE_MATRICES.keys())


def normalize_role(value) -> str:
    role = str(value or "").strip().upper()
    return role if role in VALID_ROLES else ROLE_VIEWER


def is_elevated_role(role: str) -> bool:
    return role in ELEVATED_ROLES


def _normalize_roles(raw_roles: Iterable[str]) -> frozenset[str]:
    if not isinstance(raw_roles, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(str(role).upper() for role in raw_roles) & VALID_ROLES


def _method_errors(method_name: str, raw_roles) -> list[str]:
    if method_name not in VALID_METHODS:
        return [f"{method_name}: unsupported HTTP method, expected one of {sorted(VALID_METHODS)}."]
    if not isinstance(raw_roles, list) or not raw_roles:
        return [f"{method_name}: expected a non-empty list of roles."]
    unknown = sorted({str(role).upper() for role in raw_roles} - VALID_ROLES)
    if unknown:
        return [f"{method_name}: unknown roles {unknown}, expected any of {sorted(VALID_ROLES)}."]
    return []


def validate_role_overrides_schema(overrides, *, allow_unknown_resources=False) -> None:
    """Check an ``ACCESS_ROLE_MATRICES`` value: ``{resource: {METHOD: [ROLE, ...]}}``."""

    if not overrides:
        return
    if not isinstance(overrides, dict):
        raise ValidationError("ACCESS_ROLE_MATRICES must be a JSON object.")

    errors = {}
    for resource_key, method_map in overrides.items():
        resource_name = str(resource_key)
        problems = []
        if resource_name not in KNOWN_RESOURCES and not allow_unknown_resources:
            problems.append(f"unknown resource, expected one of {sorted(KNOWN_RESOURCES)}.")
        if isinstance(method_map, dict):
            for method, raw_roles in method_map.items():
                problems.extend(_method_errors(str(method).upper(), raw_roles))
        else:
            problems.append("expected an object mapping HTTP methods to role lists.")
        if problems:
            errors[resource_name] = problems

    if errors:
        raise ValidationError(errors)


def _apply_overrides(matrices: dict, overrides: dict) -> dict:
    for resource_key, method_map in overrides.items():
        resource_matrix = matrices.setdefault(str(resource_key), {})
        for method, raw_roles in method_map.items():
            roles = _normalize_roles(raw_roles)
            if roles:
                resource_matrix[str(method).upper()] = roles
    return matrices


def get_resource_role_matrices() -> dict:
    matrices = deepcopy(DEFAULT_RESOURCE_ROLE_MATRICES)
    overrides = getattr(settings, "ACCESS_ROLE_MATRICES", None) or {}
    try:
        validate_role_overrides_schema(overrides)
    except ValidationError as exc:
        logger.warning("ignoring invalid ACCESS_ROLE_MATRICES", extra={"errors": exc.messages})
        return matrices
    return _apply_overrides(matrices, overrides)



def get_role_matrix_for_resource(resource_key: str) -> dict:
    return get_resource_role_matrices().get(resource_key, DEFAULT_ROLE_MATRIX)


def role_can(role_matrix, role, method):
    allowed_roles = role_matrix.get(method, role_matrix.get("*", frozenset()))
    return role in allowed_roles


def serialize_role_matrices(resource_matrices: dict) -> dict:
    return {
        resource_name: {
            str(method).upper(): sorted(roles) for method, roles in role_matrix.items()
        }
        for resource_name, role_matrix in resource_matrices.items()
    }
