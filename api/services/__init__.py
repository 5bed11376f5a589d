"""Service layer: HTTP resources composed from stores and hook pipelines."""

from services.base import Microservice, Service, ServiceHooks
from services.clients_service import ClientService
from services.pipeline import Outcome, Pipeline
from services.users_service import UserService

__all__ = [
    "ClientService",
    "Microservice",
    "Outcome",
    "Pipeline",
    "Service",
    "ServiceHooks",
    "UserService",
]
