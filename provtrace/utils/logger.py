"""Terminal-safe output helpers and logging setup.

Detects terminal encoding and provides ASCII alternatives for the Unicode icons the CLI
prints, and routes library logging through rich.
"""
import logging
import locale
import sys

from rich.logging import RichHandler


# Unicode to ASCII icon mapping for non-UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '⚡': '[!]',
    '→': '->',
    '←': '<-',
    '⇒': '=>',
    '…': '...',
    '•': '*',
    '│': '|',
    '─': '-',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    encoding = getattr(sys.stdout, 'encoding', None)
    if encoding:
        return encoding.lower()

    encoding = locale.getpreferredencoding(False)
    if encoding:
        return encoding.lower()

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str, force: bool = False) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons
        force: Sanitize even on UTF-8 terminals

    Returns:
        str: Sanitized text safe for current terminal
    """
    if not force and is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized


def configure_logging(verbose: bool = False, console=None):
    """Route provtrace loggers through a rich handler.

    Args:
        verbose: Enable DEBUG output; otherwise only warnings are shown
        console: rich Console the handler writes to
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger('provtrace')
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
