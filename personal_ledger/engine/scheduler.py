"""Background scheduler that triggers the month-end savings sweep"""

import logging
import threading
from datetime import date
from typing import Callable, Optional

from personal_ledger.config import settings
from personal_ledger.domain.models import SweepReport
from personal_ledger.engine.savings import SavingsEngine
from personal_ledger.utils.date_utils import days_until_month_end, is_last_day_of_month


class SweepScheduler:
    """
    Daily timer driving ``SavingsEngine.sweep_all`` on the last day of each month.

    Timing:
    - First check after ``days_until_month_end(today)`` intervals (immediately
      on the last day itself)
    - Then one check per interval (a day by default)
    - ``stop`` wakes the waiting thread at once; an in-flight sweep gets the
      grace period before the thread is abandoned
    """

    def __init__(
        self,
        savings: SavingsEngine,
        clock: Callable[[], date] = date.today,
        interval_seconds: float | None = None,
        grace_seconds: float | None = None,
    ):
        self.savings = savings
        self.clock = clock
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.sweep_interval_seconds
        self.grace_seconds = grace_seconds if grace_seconds is not None else settings.scheduler_shutdown_grace_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def initial_delay_seconds(self) -> float:
        return days_until_month_end(self.clock()) * self.interval_seconds

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="savings-sweep-scheduler", daemon=True)
        self._thread.start()
        logging.info("Sweep scheduler started", extra={"initial_delay_seconds": self.initial_delay_seconds()})

    def tick(self) -> Optional[SweepReport]:
        """One daily check; sweeps only on the last calendar day of the month"""
        if not is_last_day_of_month(self.clock()):
            return None
        try:
            return self.savings.sweep_all()
        except Exception as e:
            # Keep the timer alive; the next month-end retries
            logging.error(f"Scheduled savings sweep failed: {e}")
            return None

    def stop(self, timeout: float | None = None) -> bool:
        """Stop future ticks and wait for an in-flight sweep; False if it had to be abandoned"""
        thread = self._thread
        if thread is None:
            return True

        self._stop_event.set()
        thread.join(timeout if timeout is not None else self.grace_seconds)
        self._thread = None

        if thread.is_alive():
            logging.warning("Sweep scheduler did not finish within the grace period; abandoning it")
            return False
        logging.info("Sweep scheduler stopped")
        return True

    def _run(self) -> None:
        stop_event = self._stop_event
        if stop_event.wait(self.initial_delay_seconds()):
            return
        while True:
            self.tick()
            if stop_event.wait(self.interval_seconds):
                return
