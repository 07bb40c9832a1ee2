"""Service container shared by the route handlers.

Services are constructed once per process from ``Settings`` and kept on
``app.state``. Handlers receive the container through ``Depends(get_services)``
so tests can swap in an in-memory store and fake model clients.
"""

from dataclasses import dataclass, field

from fastapi import Request

from app.chains.assistant_reply import AssistantReplier
from app.chains.classify_capture import CaptureClassifier
from app.core.analytics_service import AnalyticsService
from app.core.assistant_service import AssistantService
from app.core.capture_service import CapturePipeline
from app.core.config import Settings, get_settings
from app.core.identity import IdentityProvider, SupabaseIdentityProvider
from app.core.ids import utc_now_iso
from app.core.integration_service import IntegrationService
from app.core.logging import get_logger
from app.core.project_service import ProjectService
from app.db.kv_store import KeyValueStore, SupabaseKVStore
from app.db.supabase_client import create_supabase

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    store: KeyValueStore
    identity: IdentityProvider
    classifier: CaptureClassifier
    replier: AssistantReplier
    analytics: AnalyticsService
    projects: ProjectService
    captures: CapturePipeline
    integrations: IntegrationService
    assistant: AssistantService
    started_at: str = field(default_factory=utc_now_iso)


def build_services(
    settings: Settings,
    store: KeyValueStore | None = None,
    identity: IdentityProvider | None = None,
    classifier: CaptureClassifier | None = None,
    replier: AssistantReplier | None = None,
) -> ServiceContainer:
    """
    Wire every service together.

    Any collaborator passed in is used as-is; the rest are built from
    ``settings``. A Supabase client is only created when the store or the
    identity provider needs one.
    """
    if store is None or identity is None:
        client = create_supabase(settings)
        store = store or SupabaseKVStore(client, table=settings.KV_TABLE)
        identity = identity or SupabaseIdentityProvider(client)

    classifier = classifier or CaptureClassifier.from_settings(settings)
    replier = replier or AssistantReplier.from_settings(settings)

    analytics = AnalyticsService(store)
    projects = ProjectService(store, analytics)
    captures = CapturePipeline(store, classifier, analytics, projects, list_limit=settings.CAPTURE_LIST_LIMIT)
    integrations = IntegrationService(store, captures, analytics)
    assistant = AssistantService(store, replier, analytics, history_limit=settings.CONVERSATION_HISTORY_LIMIT)

    logger.info(
        "Services initialized",
        extra={
            "openai_enabled": classifier.client is not None,
            "anthropic_enabled": replier.client is not None,
        },
    )

    return ServiceContainer(
        settings=settings,
        store=store,
        identity=identity,
        classifier=classifier,
        replier=replier,
        analytics=analytics,
        projects=projects,
        captures=captures,
        integrations=integrations,
        assistant=assistant,
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the process-wide container, built on first use."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = build_services(get_settings())
        request.app.state.services = services
    return services
