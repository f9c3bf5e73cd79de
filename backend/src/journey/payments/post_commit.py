"""Side effects that run after a signup has been committed."""

import inspect
from typing import Any, Callable

from journey.logging_config import get_logger

logger = get_logger(__name__)


class PostCommitActions:
    """Ordered list of best-effort actions.

    Each action runs once, in order. A failing action is logged and the
    rest still run; nothing is rolled back.
    """

    def __init__(self, flow: str, **context: Any):
        self.flow = flow
        self.context = context
        self._actions: list[tuple[str, Callable[..., Any], tuple, dict]] = []

    def add(self, name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> "PostCommitActions":
        self._actions.append((name, func, args, kwargs))
        return self

    async def run(self) -> list[str]:
        """Run every action.

        Returns:
            Names of the actions that failed
        """
        failed = []
        for name, func, args, kwargs in self._actions:
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                failed.append(name)
                logger.error(
                    "post_commit_action_failed",
                    flow=self.flow,
                    action=name,
                    error=str(e),
                    error_type=type(e).__name__,
                    **self.context,
                )
        return failed
