"""Pytest configuration and shared fixtures."""

import io
import json
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from git import Repo

from acp_session.models.logs import StoredLogEntry
from acp_session.models.messages import SessionEvent
from acp_session.models.snapshots import TreeSnapshotEvent
from acp_session.protocol.classifier import to_session_event


@pytest.fixture
def mock_storage_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ACP_SESSION_HOME at a temporary directory."""
    home = tmp_path / "acp-home"
    home.mkdir()
    monkeypatch.setenv("ACP_SESSION_HOME", str(home))
    monkeypatch.delenv("ACP_SESSION_CONFIG_DIR", raising=False)
    return home.resolve()


@pytest.fixture
def event() -> Callable[..., SessionEvent]:
    """Factory for session events from raw JSON-RPC messages."""

    def _event(raw: dict[str, Any], ts: int = 0) -> SessionEvent:
        return to_session_event(raw, ts)

    return _event


@pytest.fixture
def prompt() -> Callable[..., dict[str, Any]]:
    """Factory for session/prompt requests."""

    def _prompt(request_id: int | str, text: str = "hi") -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "session/prompt",
            "params": {"sessionId": "s-1", "prompt": [{"type": "text", "text": text}]},
        }

    return _prompt


@pytest.fixture
def update() -> Callable[..., dict[str, Any]]:
    """Factory for session/update notifications."""

    def _update(kind: str, **fields: Any) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": "session/update",
            "params": {"sessionId": "s-1", "update": {"sessionUpdate": kind, **fields}},
        }

    return _update


@pytest.fixture
def log_entry() -> Callable[..., StoredLogEntry]:
    """Factory for persisted log entries."""

    def _log_entry(method: str, params: dict[str, Any] | None = None, timestamp: str | None = None) -> StoredLogEntry:
        notification: dict[str, Any] = {"method": method}
        if params is not None:
            notification["params"] = params
        return StoredLogEntry(type="notification", timestamp=timestamp, notification=notification)

    return _log_entry


@pytest.fixture
def ndjson() -> Callable[[list[dict[str, Any]]], str]:
    """Serialize records into persisted log text."""

    def _ndjson(records: list[dict[str, Any]]) -> str:
        return "\n".join(json.dumps(record) for record in records) + "\n"

    return _ndjson


@pytest.fixture
def git_repo(tmp_path: Path) -> Repo:
    """Git repository with one initial commit."""
    path = tmp_path / "repo"
    path.mkdir()
    repo = Repo.init(path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
        config.set_value("commit", "gpgsign", "false")

    (path / "README.md").write_text("# Test\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    return repo


@pytest.fixture
def commit_file() -> Callable[..., str]:
    """Write, stage and commit a file; returns the new HEAD sha."""

    def _commit_file(repo: Repo, relative_path: str, content: str, message: str = "Update") -> str:
        target = Path(repo.working_tree_dir) / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        repo.index.add([relative_path])
        return repo.index.commit(message).hexsha

    return _commit_file


@pytest.fixture
def make_archive() -> Callable[[dict[str, str]], bytes]:
    """Build a gzip tarball from a path -> content mapping."""

    def _make_archive(files: dict[str, str]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
            for name, content in files.items():
                data = content.encode()
                info = tarfile.TarInfo(name)
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
        return buffer.getvalue()

    return _make_archive


@pytest.fixture
def snapshot() -> Callable[..., TreeSnapshotEvent]:
    """Factory for tree snapshots with an archive."""

    def _snapshot(**overrides: Any) -> TreeSnapshotEvent:
        values: dict[str, Any] = {
            "treeHash": "test-tree-hash",
            "baseCommit": None,
            "archiveUrl": "gs://bucket/trees/test-tree-hash.tar.gz",
            "changes": [{"path": "file.ts", "status": "A"}],
            "timestamp": "2026-01-01T00:00:00Z",
        }
        values.update(overrides)
        return TreeSnapshotEvent.model_validate(values)

    return _snapshot
