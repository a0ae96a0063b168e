"""
                        Services Module

Domain services of the pizza service. Each one wraps a store interface so
the same logic runs over the in-memory and SQL backends.

Services:
    - credentials: registration, login, profiles
    - sessions: bearer token issue / revoke / resolve
    - authorization: allow/deny rules per operation
    - directory: franchises and stores
    - ledger: menu and orders
    - fulfillment: the pizza factory client (mock and real)
"""

from pizza_service.services.credentials import CredentialService
from pizza_service.services.directory import DirectoryService
from pizza_service.services.ledger import OrderHistory, OrderLedger, PlacedOrder
from pizza_service.services.sessions import Actor, SessionRegistry, parse_bearer

__all__ = [
    "Actor",
    "CredentialService",
    "DirectoryService",
    "OrderHistory",
    "OrderLedger",
    "PlacedOrder",
    "SessionRegistry",
    "parse_bearer",
]
