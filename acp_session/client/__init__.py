"""Task run service client.

Public Interface:
    - TaskRunClient: Run metadata, session logs and artifacts
"""

from .api import TaskRunClient

__all__ = ["TaskRunClient"]
