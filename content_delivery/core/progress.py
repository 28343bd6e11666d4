"""
Progress display for sync runs, using the Rich library.

A sync session does not know up front how many pages it will take, so the
bar runs with an indeterminate total (Rich draws a pulse) and the status
column counts pages, upserts and deletions as they are merged.

Usage:
    from content_delivery.core.progress import SyncProgressBar

    with SyncProgressBar() as progress:
        state = await client.sync(on_page=progress.on_page)
"""

from typing import Optional

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.progress import BarColumn, Progress, ProgressColumn, Task, TaskID, TimeElapsedColumn
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme

from content_delivery.sync.merger import MergeResult
from content_delivery.sync.state import SyncPage


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(38,132,196)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(38,132,196)",
})


class SizedTextColumn(ProgressColumn):
    """Text column truncated (or padded) to a fixed width."""

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        overflow: Optional[OverflowMethod] = "ellipsis",
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.style = style
        self.justify: JustifyMethod = justify
        self.overflow: Optional[OverflowMethod] = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        text = Text.from_markup(
            self.text_format.format(task=task), style=self.style, justify=self.justify
        )
        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class SyncProgressBar:
    """
    Live progress for one sync run.

    Displays:
    - Description ("Syncing")
    - Status: pages merged, ↑ upserts, ✗ deletions
    - Pulsing bar until stop(), then a full bar
    - Elapsed time

    Example:
        Syncing        pages 3  ↑ 412  ✗ 7        ━━━━━━━━━━━━━━━━━  0:00:04
    """

    def __init__(self, description: str = "Syncing", status_width: int = 32) -> None:
        self.description = description
        self.pages = 0
        self.upserts = 0
        self.deletions = 0

        self.console = get_console()
        self.console.push_theme(PROGRESS_THEME)
        self._theme_pushed = True

        self.progress = Progress(
            SizedTextColumn("[white]{task.description}", width=12),
            SizedTextColumn("{task.fields[status]}", width=status_width, style="white"),
            BarColumn(bar_width=40, finished_style="green"),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: TaskID | None = None
        self._started = False

    def __enter__(self) -> "SyncProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop(finished=exc_type is None)

    def start(self) -> None:
        if not self._started:
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=None,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self, finished: bool = True) -> None:
        """Stop the bar. A finished run shows a full bar."""
        if self._started:
            if finished and self.task_id is not None:
                self.progress.update(self.task_id, total=1, completed=1)
            self.progress.stop()
            self._started = False
        if self._theme_pushed:
            self.console.pop_theme()
            self._theme_pushed = False

    def _get_status_text(self) -> str:
        return (
            f"pages {self.pages}  "
            f"[green]↑ {self.upserts}[/green]  "
            f"[red]✗ {self.deletions}[/red]"
        )

    def on_page(self, page: SyncPage, result: MergeResult) -> None:
        """Page callback for SyncCoordinator / ContentDeliveryClient.sync()."""
        self.pages += 1
        self.upserts += result.upserts
        self.deletions += result.deletions
        if self.task_id is not None:
            self.progress.update(self.task_id, status=self._get_status_text())
