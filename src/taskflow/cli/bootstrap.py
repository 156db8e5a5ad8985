# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the authoritative task backend (remote or local) and wires it into AppState.
"""

from __future__ import annotations

import logging

import httpx

from ..config import get_settings
from ..core.state import AppState
from ..tasks.backends import build_backend
from ..tasks.task_manager import TaskManager

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.local_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, client: httpx.AsyncClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = build_backend(settings, client=client)
    manager = TaskManager(backend)
    logger.debug("AppState created (backend=%s)", backend.name)

    return AppState(settings=settings, manager=manager)


async def start_session(state: AppState) -> None:
    """Initial load for the configured identity (if any)."""
    user_id = getattr(state.settings, "user_id", None)
    before = state.manager.error
    await state.manager.load(user_id)
    error = state.manager.error
    if error is not None and error is not before:
        logger.warning("Initial load: %s", error.message)


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown."""
    try:
        await state.manager.aclose()
    except Exception:
        logger.debug("Backend close failed.", exc_info=True)
