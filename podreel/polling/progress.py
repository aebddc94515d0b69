"""Console rendering of per-clip render progress."""

from typing import Optional

from rich.console import Console


def render_progress_bar(progress: float, width: int = 20) -> str:
    """Render a fixed-width text bar for a 0-100 percentage."""
    progress = min(max(progress, 0.0), 100.0)
    filled = round(progress / 100 * width)
    return f"|{'█' * filled}{'░' * (width - filled)}|"


class ProgressBoard:
    """
    Collects one progress line per in-progress job during a polling round and
    prints them together once the round is over.
    """

    def __init__(self, console: Optional[Console] = None, label: str = "Video"):
        self.console = console or Console()
        self.label = label
        self.lines: list[str] = []

    def add(self, index: int, progress: float) -> None:
        self.lines.append(
            f"[{self.label} {index + 1:02d}] Progress: "
            f"{render_progress_bar(progress)} {progress:5.1f}%"
        )

    def flush(self) -> None:
        if not self.lines:
            return
        self.console.print(
            "\n" + "\n".join(self.lines) + "\n", markup=False, highlight=False
        )
        self.lines = []
