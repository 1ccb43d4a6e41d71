"""Task run API client.

Fetches run metadata, persisted session logs and stored artifacts for a run.

Contract:
- Inputs: Task/run identifiers, ClientSettings
- Outputs: TaskRun, StoredLogEntry lists, artifact bytes
- Side Effects: HTTP requests, local file reads for file:// log URLs
"""

import base64
import binascii
import logging
from pathlib import Path
from urllib.parse import unquote
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from ..config.settings import ClientSettings
from ..errors import TaskRunClientError
from ..models.logs import StoredLogEntry
from ..models.snapshots import TaskRun
from ..protocol.log_parser import parse_log_entries

logger = logging.getLogger(__name__)


class TaskRunClient:
    """Async client for the task run service.

    Example:
        >>> async with TaskRunClient(settings) as client:
        ...     run = await client.get_task_run("task-1", "run-1")
        ...     entries = await client.fetch_run_logs(run)
    """

    def __init__(self, settings: ClientSettings | None = None, http: httpx.AsyncClient | None = None) -> None:
        """Initialize client.

        Args:
            settings: Client settings (default: ClientSettings())
            http: Optional preconfigured httpx client, closed by the caller
        """
        self.settings = settings or ClientSettings()
        self._owns_http = http is None
        if http is None:
            headers = {}
            if self.settings.api_token:
                headers["Authorization"] = f"Bearer {self.settings.api_token}"
            http = httpx.AsyncClient(
                base_url=self.settings.api_url,
                headers=headers,
                timeout=self.settings.request_timeout,
                follow_redirects=True,
            )
        self.http = http

    async def __aenter__(self) -> "TaskRunClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def get_task_run(self, task_id: str, run_id: str) -> TaskRun:
        """Fetch run metadata.

        Raises:
            TaskRunClientError: Request failed or the body is not a valid run
        """
        path = f"/api/tasks/{task_id}/runs/{run_id}/"
        try:
            response = await self.http.get(path)
            response.raise_for_status()
            return TaskRun.model_validate(response.json())
        except httpx.HTTPError as e:
            raise TaskRunClientError(f"Failed to fetch task run {run_id}: {e}") from e
        except (ValueError, ValidationError) as e:
            raise TaskRunClientError(f"Invalid task run payload for {run_id}: {e}") from e

    async def fetch_run_logs(self, run: TaskRun) -> list[StoredLogEntry]:
        """Fetch and parse the persisted session log of a run.

        http(s) URLs are downloaded; file:// URLs and plain paths are read
        from the local filesystem.

        Returns:
            Parsed entries, empty when the run has no log or the log is empty
        """
        if not run.log_url:
            return []

        content = await self._read_log(run.log_url)
        if not content.strip():
            logger.debug(f"Log for run {run.id} is empty")
            return []
        return parse_log_entries(content)

    async def _read_log(self, log_url: str) -> str:
        parsed = urlparse(log_url)
        if parsed.scheme in ("http", "https"):
            try:
                response = await self.http.get(log_url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise TaskRunClientError(f"Failed to fetch logs from {log_url}: {e}") from e
            return response.text

        path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(log_url)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise TaskRunClientError(f"Failed to read logs from {path}: {e}") from e

    async def download_artifact(self, task_id: str, run_id: str, storage_path: str) -> bytes | None:
        """Download a stored artifact.

        JSON bodies of the form {"content": ..., "encoding": "base64"} are
        decoded; any other body is returned as raw bytes.

        Returns:
            Artifact bytes, None when the artifact does not exist
        """
        path = f"/api/tasks/{task_id}/runs/{run_id}/artifacts/download/"
        try:
            response = await self.http.get(path, params={"path": storage_path})
            if response.status_code == 404:
                logger.debug(f"Artifact not found: {storage_path}")
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TaskRunClientError(f"Failed to download artifact {storage_path}: {e}") from e

        if response.headers.get("content-type", "").startswith("application/json"):
            body = response.json()
            if isinstance(body, dict) and body.get("encoding") == "base64":
                try:
                    return base64.b64decode(body.get("content") or "", validate=True)
                except (binascii.Error, TypeError) as e:
                    raise TaskRunClientError(f"Invalid base64 artifact {storage_path}: {e}") from e
        return response.content
