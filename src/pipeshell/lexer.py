from typing import List, NamedTuple

from pipeshell.constants import MAX_TOKENS, QUOTE_CHARS
from pipeshell.errors import TooManyTokensError


class Token(NamedTuple):
    lex: str
    quoted: bool = False

    def __str__(self) -> str:
        return f"Token('{self.lex}', quoted={self.quoted})"


class ShellLexer:
    """
    Clase que representa el lexer de la shell.

    Separa la línea por espacios en blanco. Las comillas simples o dobles
    agrupan espacios dentro de un token y se eliminan del resultado; una
    comilla sin cerrar consume hasta el final de la línea.
    """

    def __init__(self, max_tokens: int = MAX_TOKENS) -> None:
        self.max_tokens = max_tokens
        self._reset()

    def _reset(self) -> None:
        self.tokens: List[Token] = []
        self.current_token = ""
        self.in_quote = False
        self.quote_char = ""
        self.token_was_quoted = False
        self.token_started = False

    def tokenize(self, line: str) -> List[Token]:
        self._reset()

        i = 0
        while i < len(line):
            char = line[i]

            if self.in_quote:
                if char == self.quote_char:
                    self.in_quote = False
                    self.quote_char = ""
                else:
                    self.current_token += char
                i += 1
                continue

            if char in QUOTE_CHARS:
                self.in_quote = True
                self.quote_char = char
                self.token_was_quoted = True
                self.token_started = True
                i += 1
                continue

            if char.isspace():
                self.add_token()
                i += 1
                continue

            self.current_token += char
            self.token_started = True
            i += 1

        self.add_token()
        return self.tokens

    def add_token(self) -> None:
        if not self.token_started:
            return

        if len(self.tokens) >= self.max_tokens - 1:
            raise TooManyTokensError(self.max_tokens - 1)

        self.tokens.append(Token(self.current_token, self.token_was_quoted))
        self.current_token = ""
        self.token_was_quoted = False
        self.token_started = False
