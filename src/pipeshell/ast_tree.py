from enum import Enum, auto
from typing import Iterator, List, NamedTuple, Optional


class OutputMode(Enum):
    TRUNCATE = auto()
    APPEND = auto()


class OutputRedirect(NamedTuple):
    path: str
    mode: OutputMode = OutputMode.TRUNCATE


class Command:
    """
    Clase que representa un comando (una etapa) del pipeline.
    """
    def __init__(
        self,
        arguments: Optional[List[str]] = None,
        input_redirect: Optional[str] = None,
        output_redirect: Optional[OutputRedirect] = None,
        background: bool = False,
    ) -> None:
        self.arguments = list(arguments) if arguments else []
        self.input_redirect = input_redirect
        self.output_redirect = output_redirect
        self.background = background

    @property
    def argv(self) -> List[str]:
        return list(self.arguments)

    @property
    def program(self) -> str:
        return self.arguments[0] if self.arguments else ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Command):
            return NotImplemented
        return (
            self.arguments == other.arguments
            and self.input_redirect == other.input_redirect
            and self.output_redirect == other.output_redirect
            and self.background == other.background
        )

    def __repr__(self) -> str:
        return (
            f"Command({self.arguments}, in={self.input_redirect}, "
            f"out={self.output_redirect}, background={self.background})"
        )

    def __str__(self) -> str:
        parts = []
        for arg in self.arguments:
            if not arg or any(c.isspace() for c in arg):
                parts.append(f'"{arg}"')
            else:
                parts.append(arg)

        if self.input_redirect is not None:
            parts.append(f"< {self.input_redirect}")
        if self.output_redirect is not None:
            op = ">>" if self.output_redirect.mode is OutputMode.APPEND else ">"
            parts.append(f"{op} {self.output_redirect.path}")
        if self.background:
            parts.append("&")

        return " ".join(parts)


class Pipeline:
    """
    Clase que representa un pipeline: de 0 a N comandos unidos por pipes.

    Un pipeline vacío (línea en blanco o comentario) es válido y no ejecuta
    nada. Se puede usar como context manager; al salir se liberan los
    comandos. release() se puede llamar varias veces.
    """
    def __init__(self, commands: Optional[List[Command]] = None) -> None:
        self.commands: List[Command] = list(commands) if commands else []

    @property
    def background(self) -> bool:
        return bool(self.commands) and self.commands[-1].background

    def release(self) -> None:
        self.commands = []

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)

    def __getitem__(self, index: int) -> Command:
        return self.commands[index]

    def __repr__(self) -> str:
        return f"Pipeline({self.commands})"

    def __str__(self) -> str:
        return " | ".join(str(cmd) for cmd in self.commands)
