"""FastAPI dependencies wiring the store, storage and remote clients."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.config import Settings, get_settings
from src.services.analysis_service import AnalysisService
from src.services.assessment_store import AssessmentStateStore, get_assessment_store
from src.services.enhancement_client import EnhancementClient
from src.services.narrative_service import NarrativeService
from src.services.project_directory import ProjectDirectoryClient
from src.services.report_service import ReportService
from src.services.storage_service import KeyValueStorage, get_storage

# Optional bearer token, forwarded to the remote services as-is
security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Return the caller's bearer token, if any."""
    if credentials is None:
        return None
    return credentials.credentials


def get_store() -> AssessmentStateStore:
    return get_assessment_store()


def get_key_value_storage() -> KeyValueStorage:
    return get_storage()


def get_project_directory(
    token: str | None = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> ProjectDirectoryClient:
    return ProjectDirectoryClient(settings=settings, auth_token=token)


def get_enhancement_client(
    token: str | None = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> EnhancementClient:
    return EnhancementClient(settings=settings, auth_token=token)


def get_narrative_service(
    store: AssessmentStateStore = Depends(get_store),
) -> NarrativeService:
    return NarrativeService(schema=store.schema)


def get_analysis_service(
    storage: KeyValueStorage = Depends(get_key_value_storage),
) -> AnalysisService:
    return AnalysisService(storage)


def get_report_service(
    store: AssessmentStateStore = Depends(get_store),
    analysis_service: AnalysisService = Depends(get_analysis_service),
    narrative_service: NarrativeService = Depends(get_narrative_service),
    project_directory: ProjectDirectoryClient = Depends(get_project_directory),
    settings: Settings = Depends(get_settings),
) -> ReportService:
    return ReportService(
        store=store,
        analysis_service=analysis_service,
        narrative_service=narrative_service,
        project_directory=project_directory,
        settings=settings,
    )
