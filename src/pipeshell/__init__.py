from pipeshell.ast_tree import Command, OutputMode, OutputRedirect, Pipeline
from pipeshell.errors import (
    MissingCommandError,
    MissingRedirectTargetError,
    ParseError,
    ParseErrorKind,
    TooManyPipesError,
    TooManyTokensError,
)
from pipeshell.executer import CommandExecutor
from pipeshell.parser import parse

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandExecutor",
    "MissingCommandError",
    "MissingRedirectTargetError",
    "OutputMode",
    "OutputRedirect",
    "ParseError",
    "ParseErrorKind",
    "Pipeline",
    "TooManyPipesError",
    "TooManyTokensError",
    "parse",
]
