"""Role checks that decide whether an actor may view or manage a merchant."""

from __future__ import annotations

import uuid
from http import HTTPStatus

from .errors import DomainError, ErrorKind, internal_error
from .models import RoleType

_NIL = uuid.UUID(int=0)


def _merchant_scope(merchant_id):
    """Map an absent or nil merchant id to None, which the store reads as any merchant."""
    if merchant_id is None or merchant_id == _NIL:
        return None
    return merchant_id


def _forbidden(message):
    return DomainError(HTTPStatus.FORBIDDEN, ErrorKind.UNAUTHORIZED, message, PermissionError(message))


class AccessPolicy:
    """Answers access questions against a store that knows actors and their roles."""

    def __init__(self, store):
        self.store = store

    def _has_role(self, actor_id, role_type, merchant_id):
        return self.store.has_role(actor_id, RoleType(role_type), _merchant_scope(merchant_id))

    def can_view_merchant(self, actor_id, merchant_id):
        """An admin of any merchant may view every merchant; otherwise a merchant role there is needed."""
        if self._has_role(actor_id, RoleType.ADMIN, None):
            return True
        return self._has_role(actor_id, RoleType.MERCHANT, merchant_id)

    def resolve_viewer(self, merchant_id, email):
        """Return the profile of the actor with this e-mail within the merchant."""
        return self.store.get_actor_profile_by_merchant_and_email(merchant_id, email)

    def require_view_access(self, viewer_merchant_id, viewer_email, target_merchant_id):
        """Return the viewer's profile if they may view the target merchant, else raise 403."""
        viewer = self.resolve_viewer(viewer_merchant_id, viewer_email)
        try:
            allowed = self.can_view_merchant(viewer.uid, target_merchant_id)
        except DomainError:
            raise
        except Exception as exc:
            raise internal_error(exc) from exc
        if not allowed:
            raise _forbidden("not allowed to view merchant")
        return viewer

    def require_manage_access(self, viewer_merchant_id, viewer_email, target_merchant_id):
        """Return the viewer's profile if they are an admin or hold the target's merchant role."""
        viewer = self.resolve_viewer(viewer_merchant_id, viewer_email)
        try:
            if self._has_role(viewer.uid, RoleType.ADMIN, None):
                return viewer
            is_merchant = self._has_role(viewer.uid, RoleType.MERCHANT, target_merchant_id)
        except DomainError:
            raise
        except Exception as exc:
            raise internal_error(exc) from exc
        if not is_merchant:
            raise _forbidden("merchant role required")
        return viewer