from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

run_id_ctx: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def set_run_id(run_id: Optional[str]) -> None:
    run_id_ctx.set(run_id)


def get_run_id() -> Optional[str]:
    return run_id_ctx.get()


@contextmanager
def bound_run_id(run_id: Optional[str]) -> Iterator[None]:
    """Bind run_id for the current thread/task, restoring the previous value on exit."""
    token = run_id_ctx.set(run_id)
    try:
        yield
    finally:
        run_id_ctx.reset(token)
