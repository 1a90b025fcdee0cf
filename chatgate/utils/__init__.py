"""Utility modules for chatgate."""

from chatgate.utils.tasks import TaskFailure, TaskSupervisor

__all__ = ["TaskFailure", "TaskSupervisor"]
