from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

One bar per import phase (row parsing, photo download). In non-TTY
environments (CI, piped output) the bar is disabled so that no ANSI control
sequences end up in logs.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the rows (or photos) of one import.

    Args:
        total: number of units to process
        description: bar label
        unit: unit name shown by tqdm
        enabled: force on/off; None means "only on a TTY"
    """

    def __init__(
        self,
        total: int,
        *,
        description: str = "Parsing rows",
        unit: str = "row",
        enabled: bool | None = None,
    ) -> None:
        self.total = total
        self.description = description
        self.completed = 0

        self.enabled = is_tty_enabled() if enabled is None else enabled
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit=unit,
                leave=False,
                ncols=80,
                ascii=True,  # ASCII chars for better compatibility
            )
        else:
            self.pbar = None

    def advance(self, n: int = 1) -> None:
        self.completed += n
        if self.pbar is not None:
            self.pbar.update(n)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show running stats (parsed / skipped / errored) next to the bar."""
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
