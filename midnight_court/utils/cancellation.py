"""
Cooperative cancellation for long-running pipeline operations.

Workers hold a CancellationToken and call raise_if_cancelled() at their
safe points (before an LLM call, between image fetches, before merging).
The token wraps a threading.Event so a UI thread can cancel a worker.
"""

import threading

from midnight_court.errors import OperationCancelled
from midnight_court.logging_config import debug_log


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Example:
        token = CancellationToken()
        worker = threading.Thread(target=renderer.render_deck, args=(deck,),
                                  kwargs={"cancel_token": token})
        worker.start()
        token.cancel("User closed the export screen")
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "Operation cancelled"):
        """Signal cancellation. Idempotent."""
        self.reason = reason
        self._event.set()
        debug_log(f"[Cancellation] Cancel requested: {reason}")

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = ""):
        """
        Raise OperationCancelled if cancel() has been called.

        Args:
            where: Safe-point label included in the error message
        """
        if self._event.is_set():
            suffix = f" ({where})" if where else ""
            raise OperationCancelled(f"{self.reason or 'Operation cancelled'}{suffix}")


def check_cancelled(token: CancellationToken | None, where: str = ""):
    """raise_if_cancelled() that tolerates a missing token."""
    if token is not None:
        token.raise_if_cancelled(where)
