"""Client for the project/audit directory.

The directory is read-only from this service's point of view: it supplies
project metadata and tells whether model/dataset records exist for a
project, which decides the model-derived auto sections.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from src.core.config import Settings, get_settings
from src.core.questionnaire import MODEL_DATA_AUTO_SECTIONS
from src.core.structured_logging import log_json
from src.schemas.report import ProjectDetails

logger = logging.getLogger(__name__)


class ProjectDirectoryClient:
    """Look up project metadata and model records.

    Lookups never raise: failures are logged and reported as "nothing found".
    """

    def __init__(
        self,
        settings: Settings | None = None,
        auth_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.auth_token = auth_token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return httpx.AsyncClient(
            base_url=self.settings.project_directory_base_url,
            headers=headers,
            timeout=self.settings.project_directory_timeout_seconds,
            transport=self._transport,
        )

    async def _get_json(self, path: str, project_id: str):
        try:
            async with self._client() as client:
                response = await client.get(path)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log_json(
                logger,
                logging.WARNING,
                "project_directory_lookup_failed",
                project_id=project_id,
                path=path,
                error=str(exc),
            )
            return None

    async def get_project_details(self, project_id: str) -> ProjectDetails | None:
        payload = await self._get_json(f"/projects/{project_id}", project_id)
        if not isinstance(payload, dict):
            return None
        try:
            return ProjectDetails.model_validate({**payload, "project_id": project_id})
        except ValidationError as exc:
            log_json(
                logger,
                logging.WARNING,
                "project_details_invalid",
                project_id=project_id,
                error=str(exc),
            )
            return None

    async def list_models(self, project_id: str) -> list[dict]:
        payload = await self._get_json(f"/ml/{project_id}/models/list", project_id)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def auto_section_signal(self, project_id: str) -> frozenset[int]:
        """Auto sections to mark complete for a project.

        Returns:
            The model-data auto sections when at least one model record exists,
            otherwise an empty set
        """
        models = await self.list_models(project_id)
        if models:
            return MODEL_DATA_AUTO_SECTIONS
        return frozenset()
