"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.reservation.app.service.clock import utc_now
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.service.waitlist_processor import WaitlistProcessor
from src.service.reservation.driven_adapter.notifier.logging_notifier_impl import (
    LoggingNotifierImpl,
)
from src.service.reservation.driven_adapter.notifier.webhook_notifier_impl import (
    WebhookNotifierImpl,
)
from src.service.reservation.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


def _notifier_kind() -> str:
    return 'webhook' if settings.NOTIFIER_WEBHOOK_URL else 'logging'


class Container(containers.DeclarativeContainer):
    # Database (uses AsyncEngineManager with settings.DATABASE_URL_ASYNC)
    database = providers.Singleton(Database)

    # One unit of work per transaction attempt; inject `unit_of_work.provider` as a factory
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session_factory
    )
    transaction_runner = providers.Singleton(
        TransactionRunner, uow_factory=unit_of_work.provider
    )

    # Injected time source (tests override with a fixed clock)
    clock = providers.Object(utc_now)

    # Notifier: push gateway when configured, log-only otherwise
    notifier = providers.Selector(
        providers.Callable(_notifier_kind),
        webhook=providers.Singleton(WebhookNotifierImpl),
        logging=providers.Singleton(LoggingNotifierImpl),
    )
    notification_dispatcher = providers.Singleton(
        NotificationDispatcher, notifier=notifier, uow_factory=unit_of_work.provider
    )

    # Domain services (stateless)
    waitlist_processor = providers.Singleton(WaitlistProcessor)

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()