"""
Post-commit side effects.

Services register notification and audit callbacks here while they work;
the router hands `run` to FastAPI BackgroundTasks so the callbacks execute
after the response, and only when the transaction committed.
"""

import inspect
import logging
from typing import Any, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


class PostCommitHooks:
    def __init__(self):
        self._hooks: list[tuple[str, Callable[..., Any], tuple, dict]] = []

    def add(self, name: str, func: Callable[..., Any], *args, **kwargs) -> None:
        self._hooks.append((name, func, args, kwargs))

    def clear(self) -> None:
        self._hooks.clear()

    def __len__(self) -> int:
        return len(self._hooks)

    @property
    def names(self) -> list[str]:
        return [name for name, *_ in self._hooks]

    async def run(self) -> int:
        """Run every hook once. A failing hook is logged and never stops the others."""
        failures = 0
        hooks, self._hooks = self._hooks, []
        for name, func, args, kwargs in hooks:
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                failures += 1
                logger.error(f"❌ Post-commit hook '{name}' failed: {e}")
        if hooks:
            logger.debug(f"✅ Ran {len(hooks) - failures}/{len(hooks)} post-commit hooks")
        return failures


def get_post_commit_hooks(background_tasks: BackgroundTasks) -> PostCommitHooks:
    """Per-request hook list, drained after the response is sent"""
    hooks = PostCommitHooks()
    background_tasks.add_task(hooks.run)
    return hooks
