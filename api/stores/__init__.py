"""Store layer: persistence bindings, one per resource type.

Stores own the mapped model for their resource and are the only way
services read and write its records.
"""

from stores.base import Store
from stores.client_store import ClientStore
from stores.user_store import UserStore

__all__ = [
    "ClientStore",
    "Store",
    "UserStore",
]
