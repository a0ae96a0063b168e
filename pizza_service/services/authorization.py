"""
Authorization Engine

Stateless allow/deny decisions for every protected operation.

    authorize(actor, action, target) → bool
    enforce(actor, action, target, message) → None or raises

A denial for an anonymous caller is an AuthenticationError (401); a denial
for an authenticated caller is an AuthorizationError (403).

Rules:
    READ_USER / UPDATE_USER / DELETE_USER   self, or admin
    LIST_USERS                              admin only
    CREATE_FRANCHISE                        admin
    DELETE_FRANCHISE                        anyone (no role check)
    LIST_USER_FRANCHISES                    self, or admin
    CREATE_STORE / DELETE_STORE             admin, or an admin of the franchise
    ADD_MENU_ITEM                           admin
    VIEW_MENU                               anyone, anonymous included
    PLACE_ORDER / VIEW_ORDERS               any authenticated caller
"""

import enum
from dataclasses import dataclass
from typing import Optional

from pizza_service.core.exceptions import AuthenticationError, AuthorizationError
from pizza_service.services.sessions import Actor
from pizza_service.stores.base import Franchise, Role


class Action(str, enum.Enum):
    READ_USER = "read_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    LIST_USERS = "list_users"
    CREATE_FRANCHISE = "create_franchise"
    DELETE_FRANCHISE = "delete_franchise"
    LIST_USER_FRANCHISES = "list_user_franchises"
    CREATE_STORE = "create_store"
    DELETE_STORE = "delete_store"
    ADD_MENU_ITEM = "add_menu_item"
    VIEW_MENU = "view_menu"
    PLACE_ORDER = "place_order"
    VIEW_ORDERS = "view_orders"


@dataclass(frozen=True)
class Target:
    """What an action is aimed at. Unused fields stay None."""
    user_id: Optional[int] = None
    franchise: Optional[Franchise] = None


ANYONE = frozenset({Action.VIEW_MENU, Action.DELETE_FRANCHISE})
AUTHENTICATED = frozenset({Action.PLACE_ORDER, Action.VIEW_ORDERS})
ADMIN_ONLY = frozenset({Action.LIST_USERS, Action.CREATE_FRANCHISE, Action.ADD_MENU_ITEM})
SELF_OR_ADMIN = frozenset({
    Action.READ_USER,
    Action.UPDATE_USER,
    Action.DELETE_USER,
    Action.LIST_USER_FRANCHISES,
})
FRANCHISE_ADMIN = frozenset({Action.CREATE_STORE, Action.DELETE_STORE})


def authorize(actor: Optional[Actor], action: Action, target: Target = Target()) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``target``."""
    if action in ANYONE:
        return True
    if actor is None:
        return False
    if action in AUTHENTICATED:
        return True

    is_admin = actor.has_role(Role.ADMIN)
    if action in ADMIN_ONLY:
        return is_admin
    if action in SELF_OR_ADMIN:
        return is_admin or (target.user_id is not None and actor.id == target.user_id)
    if action in FRANCHISE_ADMIN:
        # An unknown franchise is denied like someone else's franchise
        if target.franchise is None:
            return False
        return is_admin or actor.is_franchise_admin(target.franchise)

    raise ValueError(f"No authorization rule for {action}")


def enforce(
    actor: Optional[Actor],
    action: Action,
    target: Target = Target(),
    message: str = "unauthorized",
) -> Optional[Actor]:
    """
    Raise unless ``actor`` may perform ``action``.

    Returns:
        The authorized actor (None when anonymous callers are allowed)

    Raises:
        AuthenticationError: No actor was resolved
        AuthorizationError: The actor lacks the rights, with ``message``
    """
    if actor is None:
        if authorize(None, action, target):
            return None
        raise AuthenticationError()
    if not authorize(actor, action, target):
        raise AuthorizationError(message)
    return actor
