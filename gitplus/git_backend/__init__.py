"""Git backend for reading history and performing commit actions"""

from gitplus.git_backend.actions import GitAction, GitActionLog, action_for_request
from gitplus.git_backend.repository import GitPlusRepository

__all__ = ["GitAction", "GitActionLog", "GitPlusRepository", "action_for_request"]
