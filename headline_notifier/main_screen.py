"""The application's single screen: latest headline and job status."""

import sys
from typing import Optional, TextIO

from .notifications import NotificationManager
from .notifier import NOTIFICATION_ID
from .scheduler import WorkScheduler
from .worker import WORK_NAME


class MainScreen:
    """Renders the latest headline and the periodic job status as text."""

    def __init__(
        self,
        manager: NotificationManager,
        scheduler: WorkScheduler,
        stream: Optional[TextIO] = None,
    ):
        self.manager = manager
        self.scheduler = scheduler
        self.stream = stream or sys.stdout
        self.last_headline: Optional[str] = None

    def render(self) -> str:
        for notification in self.manager.active_notifications():
            if notification.id == NOTIFICATION_ID:
                self.last_headline = notification.body

        lines = ["Latest News", f"  {self.last_headline or 'No headline yet'}"]

        info = self.scheduler.get_work_info(WORK_NAME)
        if info is None:
            lines.append(f"{WORK_NAME}: not scheduled")
        else:
            minutes = int(info.repeat_interval.total_seconds() // 60)
            last = info.last_result.value if info.last_result else "never run"
            lines.append(f"{WORK_NAME}: {info.state.value}, every {minutes} min, last result: {last}")
            lines.append(f"  next run at {info.next_run_at.isoformat()}")
        return "\n".join(lines)

    def open(self) -> None:
        """Show the screen."""
        self.stream.write(self.render() + "\n")
        self.stream.flush()
