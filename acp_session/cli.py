"""acp-session CLI.

Replays persisted session logs and rebuilds resume state for a run.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from .client.api import TaskRunClient
from .config.loader import load_config
from .config.settings import ClientSettings
from .conversation.replayer import rebuild_conversation
from .conversation.turn_builder import build_conversation
from .errors import AcpSessionError
from .models.conversation import ConversationTurn
from .models.conversation import ShellExecution
from .models.conversation import Turn
from .models.snapshots import ResumeResult
from .protocol.classifier import to_session_event
from .protocol.log_parser import parse_session_log
from .protocol.log_parser import parse_timestamp
from .sagas.resume import ResumeOrchestrator

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def block_text(blocks: list) -> str:
    """Join the text of content blocks, naming non-text blocks by type."""
    parts = []
    for block in blocks:
        if isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
        elif isinstance(block, dict):
            parts.append(f"[{block.get('type', 'unknown')}]")
    return "".join(parts)


def render_conversation_turn(turn: ConversationTurn) -> str:
    lines = [f"{turn.role}: {block_text(turn.content)}"]
    for tool_call in turn.tool_calls or []:
        status = "done" if tool_call.result is not None else "pending"
        lines.append(f"  [tool] {tool_call.tool_name} ({tool_call.tool_call_id}, {status})")
    return "\n".join(lines)


def render_entry(entry: Turn | ShellExecution) -> str:
    if isinstance(entry, ShellExecution):
        return f"$ {entry.command}"

    lines = [f"> {entry.user_text}"]
    for item in entry.items:
        if item.text is not None:
            lines.append(f"  {item.text}")
        elif item.tool_call is not None:
            title = item.tool_call.title or item.tool_call.tool_call_id
            lines.append(f"  [tool] {title} ({item.tool_call.status or 'pending'})")
        elif item.kind == "console":
            lines.append(f"  [{item.payload.get('level')}] {item.payload.get('message')}")
        else:
            lines.append(f"  [{item.kind}]")

    if entry.cancelled:
        lines.append("  (cancelled)")
    elif not entry.is_complete:
        lines.append("  (in progress)")
    return "\n".join(lines)


def load_settings(config_path: Path | None) -> ClientSettings:
    settings = load_config(config_path)
    configure_logging(settings.log_level)
    return settings


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: session.yaml in the config directory)",
)
@click.pass_context
def cli(ctx, config_path: Path | None):
    """acp-session - Rebuild agent conversations from session logs."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("log_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--live", is_flag=True, help="Rebuild turns with the live turn builder")
@click.option("--json", "as_json", is_flag=True, help="Print camelCase JSON")
@click.pass_context
def replay(ctx, log_file: Path, live: bool, as_json: bool):
    """Print the conversation recorded in a local session log."""
    settings = load_settings(ctx.obj["config_path"])
    parsed = parse_session_log(log_file.read_text(encoding="utf-8"))
    logger.debug(f"Parsed {len(parsed.entries)} entries from {log_file}")

    if live:
        events = [
            to_session_event(entry.notification, parse_timestamp(entry.timestamp) or 0)
            for entry in parsed.entries
            if entry.notification is not None
        ]
        result = build_conversation(events, is_prompt_pending=False)
        if as_json:
            click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
            return
        for entry in result.entries:
            click.echo(render_entry(entry))
        return

    turns = rebuild_conversation(parsed.entries, settings.tool_meta_key)
    if as_json:
        click.echo(json.dumps([turn.model_dump(mode="json", by_alias=True) for turn in turns], indent=2))
        return
    for turn in turns:
        click.echo(render_conversation_turn(turn))


async def run_resume(settings: ClientSettings, task_id: str, run_id: str, repo: Path) -> ResumeResult:
    async with TaskRunClient(settings) as client:
        orchestrator = ResumeOrchestrator(client, repo, settings=settings)
        return await orchestrator.resume(task_id, run_id)


@cli.command()
@click.argument("task_id")
@click.argument("run_id")
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="Repository to restore the working tree into",
)
@click.option("--no-snapshot", is_flag=True, help="Do not restore the working tree")
@click.option("--json", "as_json", is_flag=True, help="Print camelCase JSON")
@click.pass_context
def resume(ctx, task_id: str, run_id: str, repo: Path, no_snapshot: bool, as_json: bool):
    """Rebuild resume state for a run."""
    settings = load_settings(ctx.obj["config_path"])
    if no_snapshot:
        settings = settings.model_copy(update={"apply_snapshots": False})

    try:
        result = asyncio.run(run_resume(settings, task_id, run_id, repo))
    except AcpSessionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
        return

    click.echo(f"Resume state for run {run_id}:")
    click.echo("-" * 40)
    click.echo(f"Log entries:   {result.log_entry_count}")
    click.echo(f"Turns:         {len(result.conversation)}")
    if result.latest_snapshot is not None:
        applied = "✓ applied" if result.snapshot_applied else "✗ not applied"
        click.echo(f"Snapshot:      {result.latest_snapshot.tree_hash} ({applied})")
    else:
        click.echo("Snapshot:      none")
    click.echo(f"Interrupted:   {'yes' if result.interrupted else 'no'}")
    if result.last_device is not None:
        click.echo(f"Last device:   {result.last_device.type or 'unknown'}")


def main():
    """Entry point for acp-session CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(0)


if __name__ == "__main__":
    main()
