from __future__ import annotations

import structlog
from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource


logger = structlog.get_logger("conversation")


class InfrastructureContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    settings = providers.Object(SETTINGS)
    logger = providers.Object(logger)

    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
        echo=SETTINGS.DATABASE.DB_ECHO,
        lock_timeout=SETTINGS.DATABASE.DB_LOCK_TIMEOUT,
        statement_timeout=SETTINGS.DATABASE.DB_STATEMENT_TIMEOUT,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    access_policy = providers.Singleton(
        "api.features.conversation.policy.AccessPolicy",
    )

    conversation_store = providers.Factory(
        "api.features.conversation.service.ConversationStore",
        database=infrastructure.database,
        policy=access_policy,
        settings=infrastructure.settings.provided.CONVERSATION,
    )

    message_store = providers.Factory(
        "api.features.conversation.service.MessageStore",
        database=infrastructure.database,
        policy=access_policy,
        settings=infrastructure.settings.provided.CONVERSATION,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)


async def init_database(container: ApplicationContainer) -> DatabaseResource:
    """Initialize the database resource held by the container."""
    database = container.infrastructure.database()
    await database.init()
    logger.info("Conversation store ready")
    return database


async def shutdown_database(container: ApplicationContainer) -> None:
    database = container.infrastructure.database()
    await database.shutdown()
    container.shutdown_resources()
