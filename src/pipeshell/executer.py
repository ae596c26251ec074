import logging
import os
import signal
import sys
from typing import List, Optional, Set, Tuple

from pipeshell.ast_tree import Command, OutputMode, Pipeline
from pipeshell.constants import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    OUTPUT_FILE_MODE,
    SIGNAL_EXIT_BASE,
    color,
)

STDIN_FILENO = 0
STDOUT_FILENO = 1

CHILD_DEFAULT_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGQUIT", "SIGTSTP", "SIGPIPE", "SIGXFSZ")
    if hasattr(signal, name)
)


class PipeSet:
    """
    Los N-1 pipes de un pipeline de N etapas.

    Cada extremo se cierra una sola vez. Si falla la creación de algún pipe
    se cierran los ya creados antes de propagar el error.
    """

    def __init__(self, count: int) -> None:
        self.pipes: List[Tuple[int, int]] = []
        self._open: Set[int] = set()
        try:
            for _ in range(count):
                read_fd, write_fd = os.pipe()
                self.pipes.append((read_fd, write_fd))
                self._open.update((read_fd, write_fd))
        except OSError:
            self.close_all()
            raise

    def read_end(self, index: int) -> int:
        return self.pipes[index][0]

    def write_end(self, index: int) -> int:
        return self.pipes[index][1]

    @property
    def open_fds(self) -> List[int]:
        return sorted(self._open)

    def close(self, fd: Optional[int]) -> None:
        if fd is None or fd not in self._open:
            return
        self._open.discard(fd)
        os.close(fd)

    def close_all(self) -> None:
        for fd in self.open_fds:
            self.close(fd)

    def __len__(self) -> int:
        return len(self.pipes)

    def __enter__(self) -> "PipeSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_all()


class Stage:
    """
    Una etapa en ejecución: el comando, su pid y los extremos de pipe que
    le pertenecen (None significa heredar el stream del shell).
    """

    def __init__(
        self,
        index: int,
        command: Command,
        stdin_fd: Optional[int] = None,
        stdout_fd: Optional[int] = None,
    ) -> None:
        self.index = index
        self.command = command
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.pid: Optional[int] = None
        self.status: Optional[int] = None

    @property
    def owned_fds(self) -> List[int]:
        return [fd for fd in (self.stdin_fd, self.stdout_fd) if fd is not None]

    def __repr__(self) -> str:
        return f"Stage({self.index}, {self.command.program!r}, pid={self.pid})"


class CommandExecutor:
    """
    Clase que representa el ejecutor de pipelines.

    Lanza un proceso por comando con fork/exec, conecta las etapas con pipes,
    aplica las redirecciones y espera (foreground) o no (background) a que
    terminen. Mientras hay un pipeline en foreground guarda su grupo de
    procesos para poder reenviarle las interrupciones.
    """

    def __init__(
        self, logger: Optional[logging.Logger] = None, use_colors: bool = True
    ) -> None:
        self.logger = logger or logging.getLogger("CommandExecutor")
        self.use_colors = use_colors
        self.last_return_code = EXIT_SUCCESS
        self.background_pids: List[int] = []
        self._foreground_pgid: Optional[int] = None

    @property
    def foreground_pgid(self) -> Optional[int]:
        return self._foreground_pgid

    def begin_foreground(self, pgid: int) -> None:
        self._foreground_pgid = pgid

    def end_foreground(self) -> None:
        self._foreground_pgid = None

    def interrupt(self, signum: int = signal.SIGINT) -> bool:
        # Se llama desde el handler de señales: solo lee el estado y hace killpg
        pgid = self._foreground_pgid
        if not pgid:
            return False
        try:
            os.killpg(pgid, signum)
        except ProcessLookupError:
            return False
        return True

    def _handle_sigint(self, signum, frame) -> None:
        self.interrupt(signum)

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._handle_sigint)
        signal.signal(signal.SIGTSTP, signal.SIG_IGN)

    def execute(self, pipeline: Pipeline) -> int:
        commands = list(pipeline)
        if not commands:
            return EXIT_SUCCESS

        background = pipeline.background

        try:
            pipes = PipeSet(len(commands) - 1)
        except OSError as e:
            self._report(f"pipe: {e.strerror}")
            self.logger.error("Could not allocate pipes for %r: %s", str(pipeline), e)
            return self._finish(EXIT_FAILURE)

        try:
            with pipes:
                stages = self._spawn_all(pipeline, pipes, background)
            if stages is None:
                return self._finish(EXIT_FAILURE)

            if background:
                last = stages[-1]
                self.background_pids.extend(s.pid for s in stages)
                self.logger.debug("Background pipeline %r, last pid %d", str(pipeline), last.pid)
                print(color(f"[{last.pid}]", "CYAN", enabled=self.use_colors), flush=True)
                return self._finish(EXIT_SUCCESS)

            self._wait_all(stages)
        finally:
            self.end_foreground()

        return self._finish(self._exit_status(stages[-1].status))

    def _spawn_all(
        self, pipeline: Pipeline, pipes: PipeSet, background: bool
    ) -> Optional[List[Stage]]:
        """
        Lanza las etapas de izquierda a derecha. Si falla un fork, cierra los
        pipes, espera a las etapas ya lanzadas y devuelve None.
        """
        commands = pipeline.commands
        stages: List[Stage] = []
        pgid = 0
        for i, cmd in enumerate(commands):
            stage = Stage(
                i,
                cmd,
                stdin_fd=pipes.read_end(i - 1) if i > 0 else None,
                stdout_fd=pipes.write_end(i) if i < len(commands) - 1 else None,
            )

            try:
                self._spawn(stage, pipes, pgid)
            except OSError as e:
                self._report(f"fork: {e.strerror}")
                self.logger.error("Could not spawn stage %d of %r: %s", i, str(pipeline), e)
                pipes.close_all()
                self._wait_all(stages)
                return None

            stages.append(stage)
            for fd in stage.owned_fds:
                pipes.close(fd)

            if not cmd.background and not pgid:
                pgid = stage.pid
                if not background:
                    self.begin_foreground(pgid)

        return stages

    def reap_background(self) -> List[Tuple[int, int]]:
        """
        Recoge, sin bloquear, los procesos en background que ya terminaron.
        Devuelve pares (pid, código de salida).
        """
        reaped = []
        for pid in list(self.background_pids):
            try:
                done, status = os.waitpid(pid, os.WNOHANG)
            except ChildProcessError:
                self.background_pids.remove(pid)
                continue
            if done == 0:
                continue
            self.background_pids.remove(pid)
            reaped.append((pid, self._exit_status(status)))
            self.logger.debug("Reaped background pid %d", pid)
        return reaped

    def _spawn(self, stage: Stage, pipes: PipeSet, pgid: int) -> None:
        sys.stdout.flush()
        sys.stderr.flush()

        pid = os.fork()
        if pid == 0:
            self._run_child(stage, pipes, pgid)

        stage.pid = pid
        # Una etapa en background se queda en el grupo del shell
        if not stage.command.background:
            try:
                os.setpgid(pid, pgid or pid)
            except OSError as e:
                # El hijo ya hizo exec o ya terminó
                self.logger.debug("setpgid(%d, %d) failed: %s", pid, pgid or pid, e)

        self.logger.debug(
            "Spawned stage %d %r pid=%d pgid=%d", stage.index, stage.command.program, pid, pgid or pid
        )

    def _run_child(self, stage: Stage, pipes: PipeSet, pgid: int) -> None:
        """
        Código del proceso hijo. Nunca retorna.
        """
        code = EXIT_FAILURE
        try:
            code = self._child_main(stage, pipes, pgid)
        except Exception as e:
            self._report(f"{stage.command.program}: {e}")
        finally:
            os._exit(code)

    def _child_main(self, stage: Stage, pipes: PipeSet, pgid: int) -> int:
        cmd = stage.command

        for signum in CHILD_DEFAULT_SIGNALS:
            signal.signal(signum, signal.SIG_DFL)

        if not cmd.background:
            try:
                os.setpgid(0, pgid)
            except OSError:
                # El padre también hace setpgid
                pass

        try:
            if stage.stdin_fd is not None:
                os.dup2(stage.stdin_fd, STDIN_FILENO)
            if stage.stdout_fd is not None:
                os.dup2(stage.stdout_fd, STDOUT_FILENO)
        except OSError as e:
            self._report(f"dup2: {e.strerror}")
            return EXIT_FAILURE

        pipes.close_all()

        if cmd.input_redirect is not None:
            if not self._redirect(cmd.input_redirect, os.O_RDONLY, STDIN_FILENO):
                return EXIT_FAILURE

        if cmd.output_redirect is not None:
            flags = os.O_WRONLY | os.O_CREAT
            if cmd.output_redirect.mode is OutputMode.APPEND:
                flags |= os.O_APPEND
            else:
                flags |= os.O_TRUNC
            if not self._redirect(cmd.output_redirect.path, flags, STDOUT_FILENO):
                return EXIT_FAILURE

        try:
            os.execvp(cmd.program, cmd.argv)
        except FileNotFoundError:
            self._report(f"{cmd.program}: command not found")
        except (OSError, ValueError) as e:
            self._report(f"{cmd.program}: {getattr(e, 'strerror', None) or e}")
        return EXIT_COMMAND_NOT_FOUND

    def _redirect(self, path: str, flags: int, target_fd: int) -> bool:
        try:
            fd = os.open(path, flags, OUTPUT_FILE_MODE)
        except OSError as e:
            self._report(f"{path}: {e.strerror}")
            return False

        try:
            os.dup2(fd, target_fd)
        except OSError as e:
            self._report(f"dup2: {e.strerror}")
            return False
        finally:
            os.close(fd)
        return True

    def _wait_all(self, stages: List[Stage]) -> None:
        for stage in stages:
            if stage.pid is None:
                continue
            try:
                _, stage.status = os.waitpid(stage.pid, 0)
            except ChildProcessError:
                self.logger.debug("Stage %d (pid %d) already reaped", stage.index, stage.pid)
                continue
            self.logger.debug(
                "Stage %d (pid %d) finished with %d",
                stage.index,
                stage.pid,
                self._exit_status(stage.status),
            )

    @staticmethod
    def _exit_status(status: Optional[int]) -> int:
        if status is None:
            return EXIT_SUCCESS
        if os.WIFEXITED(status):
            return os.WEXITSTATUS(status)
        if os.WIFSIGNALED(status):
            return SIGNAL_EXIT_BASE + os.WTERMSIG(status)
        return EXIT_FAILURE

    def _finish(self, code: int) -> int:
        self.last_return_code = code
        return code

    def _report(self, message: str) -> None:
        print(color(message, "RED", sys.stderr, self.use_colors), file=sys.stderr, flush=True)
