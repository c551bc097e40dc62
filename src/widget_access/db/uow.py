from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from .engine import DBEngine

T = TypeVar("T")

logger = logging.getLogger(__name__)

PostCommitHook = Callable[[], Awaitable[None] | None]


class UnitOfWork:
    """One session, one transaction.

    Commits on clean exit (unless ``commit_on_success`` is False) and rolls back
    on any exception, including task cancellation. Hooks registered with
    :meth:`on_commit` run only after the commit succeeded, outside the
    transaction.
    """

    def __init__(self, engine: DBEngine, *, commit_on_success: bool = True):
        self._engine = engine
        self._commit_on_success = commit_on_success
        self.session: AsyncSession | None = None
        self._session_cm = None
        self._post_commit: list[PostCommitHook] = []

    async def __aenter__(self) -> "UnitOfWork":
        self._session_cm = self._engine.session()
        self.session = await self._session_cm.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        committed = False
        try:
            if exc_type is None and self._commit_on_success:
                await self.session.commit()
                committed = True
            else:
                await self.session.rollback()
        finally:
            await self._session_cm.__aexit__(exc_type, exc, tb)
        if committed:
            await self._run_post_commit()
        return False

    def on_commit(self, hook: PostCommitHook) -> None:
        self._post_commit.append(hook)

    async def _run_post_commit(self) -> None:
        hooks, self._post_commit = self._post_commit, []
        for hook in hooks:
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # already committed
                logger.exception("post-commit hook %r failed", hook)

    def repo(self, model: Type[T]) -> "Repository[T]":
        assert self.session is not None
        from .repository import Repository

        return Repository[T](self.session, model)
