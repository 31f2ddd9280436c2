"""Drive a scan coroutine from the synchronous ``portprobe scan`` command.

Ctrl-C cancels every in-flight probe task so each socket is closed before the
process exits, then surfaces as ``KeyboardInterrupt`` to the command.
"""

import asyncio
import signal
import sys
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar, cast

T = TypeVar("T")


def _cancel_all_tasks(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel all pending tasks on the event loop."""
    tasks = asyncio.all_tasks(loop)
    for task in tasks:
        task.cancel()

    if tasks:
        loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))


def _run_in_fresh_loop(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a new loop, cancelling in-flight probes on exit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    original_sigint = None
    interrupted = False

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal interrupted
        interrupted = True
        # Cancelling unwinds every probe through its finally block
        for task in asyncio.all_tasks(loop):
            task.cancel()

    install_handlers = (
        sys.platform != "win32" and threading.current_thread() is threading.main_thread()
    )
    if install_handlers:
        original_sigint = signal.signal(signal.SIGINT, signal_handler)

    try:
        return loop.run_until_complete(coro)
    except asyncio.CancelledError:
        if interrupted:
            raise KeyboardInterrupt from None
        raise
    finally:
        try:
            _cancel_all_tasks(loop)
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            asyncio.set_event_loop(None)
            loop.close()

        if install_handlers and original_sigint is not None:
            signal.signal(signal.SIGINT, original_sigint)


def safe_async_run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a scan coroutine to completion, on a worker thread if a loop is running."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return _run_in_fresh_loop(coro)

    result: T | None = None
    error: BaseException | None = None

    def _runner() -> None:
        nonlocal result, error
        try:
            result = _run_in_fresh_loop(coro)
        except BaseException as exc:
            error = exc

    thread = threading.Thread(target=_runner, daemon=True)
    thread.start()
    thread.join()

    if error is not None:
        raise error

    return cast(T, result)
