from __future__ import annotations

import logging
from dataclasses import dataclass

from accounts.models import get_user_role
from scoping.roles import ROLE_ADMIN, ROLE_VIEWER, is_elevated_role

logger = logging.getLogger(__name__)

VIEW_AS_FILTER = "user"


@dataclass(frozen=True)
class Identity:
    user_id: int | None
    role: str = ROLE_VIEWER
    # Set only for elevated callers in "view as" mode.
    target_user_id: int | None = None

    @property
    def is_elevated(self) -> bool:
        return is_elevated_role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _positive_int(value) -> int | None:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def identity_for_user(user, *, target_user_id=None) -> Identity:
    role = get_user_role(user)
    user_id = getattr(user, "pk", None) if getattr(user, "is_authenticated", False) else None
    target = None
    if target_user_id is not None and is_elevated_role(role):
        target = _positive_int(target_user_id) or user_id
    return Identity(user_id=user_id, role=role, target_user_id=target)


def resolve_identity(request) -> Identity:
    """Build the caller identity, honouring ``filter=user&userId=<id>`` for elevated roles.

    Without ``userId`` the filter is ignored. An invalid or non-positive
    ``userId`` falls back to the caller's own id.
    Non-elevated callers cannot view as another user; the parameters are ignored.
    """

    params = getattr(request, "query_params", None) or request.GET
    target_user_id = None
    if (params.get("filter") or "").strip().lower() == VIEW_AS_FILTER:
        target_user_id = (params.get("userId") or "").strip() or None

    identity = identity_for_user(request.user, target_user_id=target_user_id)
    if target_user_id is not None and identity.target_user_id is None:
        logger.info(
            "view-as request ignored for non-elevated caller",
            extra={"user_id": identity.user_id, "role": identity.role},
        )
    return identity
