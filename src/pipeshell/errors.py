from enum import Enum, auto


class ParseErrorKind(Enum):
    TOO_MANY_TOKENS = auto()
    TOO_MANY_PIPES = auto()
    MISSING_REDIRECT_TARGET = auto()
    MISSING_COMMAND = auto()


class ParseError(SyntaxError):
    """
    Error de sintaxis en la línea de comandos.
    """

    kind: ParseErrorKind

    def __init__(self, message: str, kind: ParseErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return self.msg


class TooManyTokensError(ParseError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Demasiados tokens en la línea (máximo {limit})",
            ParseErrorKind.TOO_MANY_TOKENS,
        )
        self.limit = limit


class TooManyPipesError(ParseError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Demasiados comandos en el pipeline (máximo {limit})",
            ParseErrorKind.TOO_MANY_PIPES,
        )
        self.limit = limit


class MissingRedirectTargetError(ParseError):
    def __init__(self, operator: str) -> None:
        super().__init__(
            f"Falta archivo después de '{operator}'",
            ParseErrorKind.MISSING_REDIRECT_TARGET,
        )
        self.operator = operator


class MissingCommandError(ParseError):
    def __init__(self, position: int) -> None:
        super().__init__(
            f"Comando vacío en la posición {position} del pipeline",
            ParseErrorKind.MISSING_COMMAND,
        )
        self.position = position
