"""
Unread Notification Poller
Refreshes the unread notification list on a fixed interval
"""

import logging
import threading
from typing import Callable, List, Optional

import entities
from client.api_client import ApiError, CareTrackClient, UnauthorizedError


logger = logging.getLogger(__name__)


class UnreadNotificationPoller:
    """
    Background thread that refetches unread notifications every
    ``poll_interval`` seconds and hands them to ``on_update``.

    Stops on its own when the session is no longer authorized.
    """

    def __init__(
        self,
        client: CareTrackClient,
        poll_interval: float = 30,
        on_update: Optional[Callable[[List[entities.Notification]], None]] = None
    ):
        self.client = client
        self.poll_interval = poll_interval
        self.on_update = on_update
        self.latest: List[entities.Notification] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="unread-notification-poller", daemon=True)
        self._thread.start()
        logger.info(f"Polling unread notifications every {self.poll_interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def poll_once(self) -> List[entities.Notification]:
        """Fetch bypassing the cache; UnauthorizedError propagates"""
        unread = self.client.notifications.unread(refresh=True)
        self.latest = unread
        if self.on_update is not None:
            self.on_update(unread)
        return unread

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except UnauthorizedError:
                logger.warning("Session unauthorized, stopping notification poller")
                self._stop_event.set()
                break
            except ApiError as e:
                logger.error(f"Notification poll failed: {e}")
            except Exception as e:
                logger.error(f"Notification poll error: {e}", exc_info=True)
            self._stop_event.wait(self.poll_interval)
