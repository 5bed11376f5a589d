"""Store for counselling clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

from models import Client
from stores.base import Store

if TYPE_CHECKING:
    from core.application import Application


class ClientStore(Store[Client]):
    def __init__(self, context: Application) -> None:
        super().__init__(context, name="client", storage=Client)
