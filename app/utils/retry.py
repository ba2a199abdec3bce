# app/utils/retry.py

from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _log_retry(operation_name: str, attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        logger.warning(
            "Attempt failed, retrying",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            attempts=attempts,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error_message=str(retry_state.outcome.exception()),
        )
    return before_sleep


async def retry_async(
    func: Callable[..., Awaitable[Any]],
    *args,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    operation_name: str = "operation",
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    **kwargs,
) -> Any:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or the attempts run out.

    The wait between attempts is fixed, there is no backoff. The last
    exception is re-raised once every attempt has failed.

    Args:
        func: Coroutine function to call
        attempts: Maximum number of calls, defaults to settings.sync_retry_attempts
        delay: Seconds to wait between calls, defaults to settings.sync_retry_delay
        operation_name: Label used in the log lines
        should_retry: Predicate on the raised exception, every Exception is
            retried when not given. Anything it rejects is raised at once.
    Returns:
        Whatever ``func`` returns
    """
    attempts = max(attempts if attempts is not None else settings.sync_retry_attempts, 1)
    delay = delay if delay is not None else settings.sync_retry_delay

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception(should_retry) if should_retry else retry_if_exception_type(Exception),
        before_sleep=_log_retry(operation_name, attempts),
        reraise=True,
    )
    try:
        return await retrying(func, *args, **kwargs)
    except Exception as e:
        logger.error(
            "Operation failed, not retrying",
            operation=operation_name,
            attempts=attempts,
            error_message=str(e),
        )
        raise
