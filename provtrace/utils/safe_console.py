"""Terminal-safe Console wrapper for Rich library.

Sanitizes Unicode icons on terminals that don't support UTF-8.
"""
from rich.console import Console
from typing import Any
from .logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Console that replaces Unicode icons with ASCII on non-UTF-8 terminals."""

    def __init__(self, *args, sanitize: bool = None, **kwargs):
        """Initialize SafeConsole.

        Args:
            sanitize: Force sanitization on or off; detected from the terminal when None

        All other arguments are passed through to Rich's Console.
        """
        self._needs_sanitization = (not is_utf8_capable()) if sanitize is None else sanitize
        super().__init__(*args, **kwargs)

    def _sanitize(self, objects):
        return [
            sanitize_for_terminal(obj, force=True) if isinstance(obj, str) else obj
            for obj in objects
        ]

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            objects = self._sanitize(objects)
        super().print(*objects, **kwargs)

    def status(self, *args, **kwargs):
        """Create a status context with an ASCII spinner on non-UTF-8 terminals."""
        if self._needs_sanitization:
            kwargs['spinner'] = 'line'
            args = self._sanitize(args)
        return super().status(*args, **kwargs)
