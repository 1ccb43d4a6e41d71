"""Agent session reconstruction library.

Turns the ordered stream of agent-client protocol messages exchanged with a
remote agent into a displayable conversation, and rebuilds the same structure
from a persisted log after a restart.

Public Interface:
    Modules:
    - models: Shared data structures
    - protocol: Message classification and persisted log parsing
    - conversation: Live turn building and log replay
    - snapshots: Working-tree snapshot lookup and restoration
    - sagas: Ordered steps with compensation, resume orchestration
    - client: Run metadata, log and artifact collaborator
    - config: Configuration loading
    - storage: Directory resolution
"""

from .conversation import build_conversation
from .conversation import rebuild_conversation
from .errors import AcpSessionError
from .errors import StepFailedError
from .models import ConversationTurn
from .models import ResumeResult
from .models import Turn
from .sagas import ResumeOrchestrator

__all__ = [
    "AcpSessionError",
    "StepFailedError",
    "ConversationTurn",
    "ResumeResult",
    "Turn",
    "ResumeOrchestrator",
    "build_conversation",
    "rebuild_conversation",
]
