import tkinter as tk
from collections.abc import Callable


class TkScheduler:
    """Runs delayed callbacks on the Tk event loop via ``after``."""

    def __init__(self, widget: tk.Misc):
        self.widget = widget

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> str:
        return self.widget.after(delay_ms, fn)

    def cancel(self, handle: str) -> None:
        self.widget.after_cancel(handle)
