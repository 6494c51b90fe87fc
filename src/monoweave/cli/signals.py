import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from monoweave.common import L, bus
from monoweave.engine import CancellationToken


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Iterator[CancellationToken]:
    """
    Map SIGINT to the cancellation token for the duration of the block.

    The previous handler is restored on exit. Outside the main thread signal
    handlers cannot be installed, so the token is yielded untouched.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _on_sigint(signum, frame):
        if not token.cancelled:
            bus.warning(L.apply.run.cancelled)
        token.cancel("SIGINT")

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
