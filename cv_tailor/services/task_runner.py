"""Retry, timeout and stage bookkeeping for pipeline tasks"""

import asyncio
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.errors import InternalError, PipelineError, TransientError
from ..utils.config import PipelineConfig, get_settings
from ..utils.logger import pipeline_logger

T = TypeVar("T")


@contextmanager
def pipeline_stage(name: str) -> Iterator[None]:
    """Tag errors escaping the block with the stage name"""
    pipeline_logger.debug(f"Stage started: {name}")
    try:
        yield
    except PipelineError as e:
        raise e.with_stage(name)
    except Exception as e:
        raise InternalError(str(e) or type(e).__name__, stage=name,
                            context={"error_type": type(e).__name__}) from e
    pipeline_logger.debug(f"Stage finished: {name}")


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, PipelineError) and error.retryable


class TaskRunner:
    """Runs a task body with a per-attempt timeout and whole-task retries"""

    def __init__(self, max_attempts: Optional[int] = None, min_wait: Optional[float] = None,
                 max_wait: Optional[float] = None, timeout: Optional[float] = None,
                 config: Optional[PipelineConfig] = None):
        config = config or get_settings().pipeline
        self.max_attempts = max_attempts if max_attempts is not None else config.task_max_attempts
        self.min_wait = min_wait if min_wait is not None else config.task_min_wait
        self.max_wait = max_wait if max_wait is not None else config.task_max_wait
        self.timeout = timeout if timeout is not None else config.task_timeout

    async def _attempt(self, task_name: str, body: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(body(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise TransientError(f"Attempt timed out after {self.timeout:g}s", stage=task_name)
        except PipelineError:
            raise
        except Exception as e:
            raise InternalError(str(e) or type(e).__name__, stage=task_name,
                                context={"error_type": type(e).__name__}) from e

    def _log_retry(self, task_name: str, task_id: str):
        def before_sleep(state: RetryCallState):
            error = state.outcome.exception() if state.outcome else None
            pipeline_logger.warning(
                f"{task_name} {task_id} attempt {state.attempt_number} failed: {error}; "
                f"retrying in {state.next_action.sleep if state.next_action else 0:.1f}s"
            )
        return before_sleep

    async def run(self, task_name: str, task_id: str, body: Callable[[], Awaitable[T]],
                  on_failure: Optional[Callable[[PipelineError], Awaitable[None]]] = None,
                  max_attempts: Optional[int] = None) -> T:
        """Run body until it succeeds, fails permanently or attempts run out"""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts or self.max_attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception(is_retryable),
            before_sleep=self._log_retry(task_name, task_id),
            reraise=True,
        )

        pipeline_logger.info(f"{task_name} {task_id} started")
        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._attempt(task_name, body)
        except PipelineError as e:
            pipeline_logger.error(f"{task_name} {task_id} failed: {e}")
            if on_failure is not None:
                await on_failure(e)
            raise

        pipeline_logger.info(f"{task_name} {task_id} completed")
        return result
