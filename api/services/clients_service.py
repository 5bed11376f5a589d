"""Client service: CRUD routes for counselling clients at ``/client``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from models import Client
from services.base import Service, ServiceHooks

if TYPE_CHECKING:
    from core.application import Application


class ClientService(Service[Client]):
    def __init__(self, context: Application, hooks: ServiceHooks | None = None) -> None:
        super().__init__(context, name="client", store="client", hooks=hooks)
