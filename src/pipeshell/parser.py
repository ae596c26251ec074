from typing import List, Optional

from pipeshell.ast_tree import Command, OutputMode, OutputRedirect, Pipeline
from pipeshell.constants import (
    APPEND_TOKEN,
    BACKGROUND_TOKEN,
    COMMENT_CHAR,
    INPUT_TOKEN,
    MAX_PIPES,
    MAX_TOKENS,
    OUTPUT_TOKEN,
    PIPE_TOKEN,
)
from pipeshell.errors import (
    MissingCommandError,
    MissingRedirectTargetError,
    TooManyPipesError,
)
from pipeshell.lexer import ShellLexer, Token


class ShellParser:
    """
    Clase que representa el parser de la shell.

    Recorre los tokens una sola vez de izquierda a derecha acumulando el
    comando actual. Un token entre comillas nunca es un operador.
    """

    def __init__(self, tokens: List[Token], max_pipes: int = MAX_PIPES) -> None:
        self.tokens = [t if isinstance(t, Token) else Token(t) for t in tokens]
        self.max_pipes = max_pipes
        self.pos = 0

        if self.tokens:
            self._validate_tokens()

    def _validate_tokens(self) -> None:
        stages = 1 + sum(1 for t in self.tokens if self._is_operator(t, PIPE_TOKEN))
        if stages > self.max_pipes:
            raise TooManyPipesError(self.max_pipes)

    def parse(self) -> Pipeline:
        commands: List[Command] = []
        current = Command()

        while self.pos < len(self.tokens):
            token = self.consume_any()

            if self._is_operator(token, PIPE_TOKEN):
                commands.append(current)
                current = Command()
            elif self._is_operator(token, INPUT_TOKEN):
                current.input_redirect = self._redirect_target(token.lex)
            elif self._is_operator(token, OUTPUT_TOKEN):
                current.output_redirect = OutputRedirect(
                    self._redirect_target(token.lex), OutputMode.TRUNCATE
                )
            elif self._is_operator(token, APPEND_TOKEN):
                current.output_redirect = OutputRedirect(
                    self._redirect_target(token.lex), OutputMode.APPEND
                )
            elif self._is_operator(token, BACKGROUND_TOKEN):
                current.background = True
                break
            else:
                current.arguments.append(token.lex)

        commands.append(current)

        for i, cmd in enumerate(commands):
            if not cmd.arguments:
                raise MissingCommandError(i)

        return Pipeline(commands)

    def _redirect_target(self, operator: str) -> str:
        if self.peek() is None:
            raise MissingRedirectTargetError(operator)
        return self.consume_any().lex

    @staticmethod
    def _is_operator(token: Token, operator: str) -> bool:
        return not token.quoted and token.lex == operator

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def consume_any(self) -> Token:
        if self.pos >= len(self.tokens):
            raise SyntaxError("Fin de entrada inesperado")
        token = self.tokens[self.pos]
        self.pos += 1
        return token


def is_blank_or_comment(line: str) -> bool:
    stripped = line.lstrip()
    return not stripped or stripped.startswith(COMMENT_CHAR)


def parse(line: str, max_tokens: int = MAX_TOKENS, max_pipes: int = MAX_PIPES) -> Pipeline:
    """
    Convierte una línea de texto en un Pipeline.

    Las líneas en blanco y los comentarios producen un Pipeline vacío.
    Lanza ParseError (o una subclase) si la línea está mal formada.
    """
    if is_blank_or_comment(line):
        return Pipeline()

    tokens = ShellLexer(max_tokens).tokenize(line)
    return ShellParser(tokens, max_pipes).parse()
