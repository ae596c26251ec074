import sys
from typing import TextIO, Optional

MAX_LINE_LEN = 4096
MAX_TOKENS = 256
MAX_PIPES = 64

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_COMMAND_NOT_FOUND = 127
SIGNAL_EXIT_BASE = 128

PROMPT = "shell> "
EXIT_DIRECTIVE = "exit"
LOG_LEVEL_ENV = "PIPESHELL_LOG_LEVEL"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

PIPE_TOKEN = "|"
INPUT_TOKEN = "<"
OUTPUT_TOKEN = ">"
APPEND_TOKEN = ">>"
BACKGROUND_TOKEN = "&"
COMMENT_CHAR = "#"
QUOTE_CHARS = ('"', "'")

OUTPUT_FILE_MODE = 0o644

COLORS = {
    "RESET": "\033[0m",
    "RED": "\033[91m",
    "GREEN": "\033[92m",
    "CYAN": "\033[96m",
}


def color(
    text: str,
    color_name: str,
    stream: Optional[TextIO] = None,
    enabled: bool = True,
) -> str:
    """
    Colorea el texto solo si el stream destino es una terminal.
    """
    if not enabled:
        return text
    stream = stream or sys.stdout
    try:
        is_tty = stream.isatty()
    except (AttributeError, ValueError):
        is_tty = False
    if not is_tty:
        return text
    return f"{COLORS.get(color_name, '')}{text}{COLORS['RESET']}"
