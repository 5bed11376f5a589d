"""FastAPI application for the service kit.

Builds the application context, registers every store and then every
service (services resolve their stores by name), and installs the user
service as the authenticator for protected sub-routes.

Serve with:
    uvicorn main:app --reload
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from core.application import Application
from core.config import Settings
from core.logger import configure_logging, get_logger
from services import ClientService, UserService
from stores import ClientStore, UserStore

configure_logging()
logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None, *, engine: AsyncEngine | None = None
) -> Application:
    application = Application(settings, engine=engine)

    application.add_store(UserStore)
    application.add_store(ClientStore)

    users = application.add_service(UserService)
    application.add_service(ClientService)

    application.use_authenticator(users.authenticate)

    logger.info(
        "app.created",
        stores=sorted(application.stores),
        services=sorted(application.services),
        routes=len(application.http.routes),
    )
    return application


application = create_app()
app = application.http
