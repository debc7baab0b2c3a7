"""FastAPI dependencies.

Process-wide services are built once (``lru_cache``) so every request sees
the same job registry and automation gateway. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from autoapply.automation.application_store import ApplicationStore
from autoapply.automation.classifier import PlatformClassifier
from autoapply.automation.orchestrator import SubmissionOrchestrator
from autoapply.automation.session_vault import SessionVault
from autoapply.automation.status import StatusService
from autoapply.automation.suggestion_gate import ProjectSuggestionGate
from autoapply.services.document_generator import PdfResumeRenderer


@lru_cache
def get_classifier() -> PlatformClassifier:
    return PlatformClassifier()


@lru_cache
def get_session_vault() -> SessionVault:
    return SessionVault()


@lru_cache
def get_application_store() -> ApplicationStore:
    return ApplicationStore()


@lru_cache
def get_orchestrator() -> SubmissionOrchestrator:
    """Shared orchestrator; the gateway is resolved on the first submission."""
    return SubmissionOrchestrator(
        classifier=get_classifier(),
        vault=get_session_vault(),
        renderer=PdfResumeRenderer(),
        store=get_application_store(),
    )


def get_status_service(
    orchestrator: Annotated[SubmissionOrchestrator, Depends(get_orchestrator)],
    store: Annotated[ApplicationStore, Depends(get_application_store)],
) -> StatusService:
    return StatusService(orchestrator, store)


def get_suggestion_gate(
    orchestrator: Annotated[SubmissionOrchestrator, Depends(get_orchestrator)],
) -> ProjectSuggestionGate:
    return ProjectSuggestionGate(orchestrator)


# Type aliases for dependency injection
ClassifierDep = Annotated[PlatformClassifier, Depends(get_classifier)]
VaultDep = Annotated[SessionVault, Depends(get_session_vault)]
StoreDep = Annotated[ApplicationStore, Depends(get_application_store)]
OrchestratorDep = Annotated[SubmissionOrchestrator, Depends(get_orchestrator)]
StatusServiceDep = Annotated[StatusService, Depends(get_status_service)]
SuggestionGateDep = Annotated[ProjectSuggestionGate, Depends(get_suggestion_gate)]
