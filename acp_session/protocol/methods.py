"""Protocol method names.

Extension notifications live under the `_acp/` namespace. Some agent SDKs
prefix extension methods with one more underscore when relaying them, so both
spellings are recognized as the same event.
"""

SESSION_PROMPT = "session/prompt"
SESSION_UPDATE = "session/update"
SESSION_REQUEST_PERMISSION = "session/request_permission"

EXTENSION_NAMESPACE = "_acp"

TREE_SNAPSHOT = f"{EXTENSION_NAMESPACE}/tree_snapshot"
CONSOLE = f"{EXTENSION_NAMESPACE}/console"
STATUS = f"{EXTENSION_NAMESPACE}/status"
COMPACT_BOUNDARY = f"{EXTENSION_NAMESPACE}/compact_boundary"
TASK_NOTIFICATION = f"{EXTENSION_NAMESPACE}/task_notification"
USER_SHELL_EXECUTE = f"{EXTENSION_NAMESPACE}/user_shell_execute"
SDK_SESSION = f"{EXTENSION_NAMESPACE}/sdk_session"


def sdk_prefixed(method: str) -> str:
    """Return the SDK-relayed spelling of an extension method."""
    return f"_{method}"


def is_extension_method(method: str | None, name: str) -> bool:
    """Check whether method is the bare or SDK-prefixed spelling of name."""
    return method == name or method == sdk_prefixed(name)
