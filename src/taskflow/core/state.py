# src/taskflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_manager import TaskManager


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in with the same attributes).
    settings: object

    manager: TaskManager
