import argparse
import logging
import os
import sys
from typing import List, Optional

from pipeshell.constants import (
    EXIT_DIRECTIVE,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    LOG_LEVEL_ENV,
    LOG_LEVELS,
    MAX_LINE_LEN,
    PROMPT,
    color,
)
from pipeshell.errors import ParseError
from pipeshell.executer import CommandExecutor
from pipeshell.parser import parse


class Shell:
    """
    Bucle de lectura y ejecución: lee una línea, la convierte en un Pipeline
    y se la pasa al ejecutor.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        prompt: str = PROMPT,
        use_colors: bool = True,
        interactive: Optional[bool] = None,
    ) -> None:
        self.executor = executor or CommandExecutor(use_colors=use_colors)
        self.prompt = prompt
        self.use_colors = use_colors
        self.interactive = interactive
        self.last_status = EXIT_SUCCESS
        self.logger = logging.getLogger("Shell")

    def color(self, text: str, color_name: str, stream=None) -> str:
        return color(text, color_name, stream, self.use_colors)

    def run_line(self, line: str) -> int:
        line = line[:MAX_LINE_LEN]
        try:
            pipeline = parse(line)
        except ParseError as e:
            print(
                self.color(f"Parse error: {e}", "RED", sys.stderr),
                file=sys.stderr,
                flush=True,
            )
            self.logger.debug("Parse error (%s) in %r", e.kind.name, line)
            self.last_status = EXIT_FAILURE
            return self.last_status

        with pipeline:
            if not pipeline:
                return self.last_status
            self.last_status = self.executor.execute(pipeline)
        return self.last_status

    def check_background_jobs(self) -> None:
        for pid, code in self.executor.reap_background():
            self.logger.info("Background process %d finished with %d", pid, code)

    def read_line(self) -> Optional[str]:
        if self.interactive:
            print(self.color(self.prompt, "GREEN"), end="", flush=True)
        line = sys.stdin.readline()
        if not line:
            return None
        return line.rstrip("\n")

    def run(self) -> int:
        if self.interactive is None:
            self.interactive = sys.stdin.isatty()
        self.executor.install_signal_handlers()
        while True:
            self.check_background_jobs()
            line = self.read_line()
            if line is None:
                if self.interactive:
                    print()
                break

            if line == EXIT_DIRECTIVE:
                break
            if not line:
                continue

            self.run_line(line)

        return self.last_status


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipeshell",
        description="Intérprete de comandos con pipes, redirecciones y background.",
    )
    parser.add_argument("-c", dest="command", help="ejecuta una sola línea y termina")
    parser.add_argument("--no-color", action="store_true", help="desactiva los colores")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING").upper(),
        help=f"nivel de logging (por defecto ${LOG_LEVEL_ENV} o WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    # argparse no valida el valor por defecto que viene del entorno
    if args.log_level not in LOG_LEVELS:
        parser.error(f"nivel de logging inválido: {args.log_level}")

    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if sys.stdin is not None and hasattr(sys.stdin, "reconfigure"):
        sys.stdin.reconfigure(errors="surrogateescape")

    shell = Shell(use_colors=not args.no_color)
    shell.executor.install_signal_handlers()
    if args.command is not None:
        return shell.run_line(args.command)
    return shell.run()


if __name__ == "__main__":
    sys.exit(main())
