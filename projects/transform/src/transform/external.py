"""Transformation that pipes column data through an external program."""

from collections.abc import Mapping, Sequence
from logging import getLogger
from pathlib import Path
from shlex import split
from subprocess import PIPE, run
from tomllib import load

from markupsafe import escape

logger = getLogger(__name__)

type Command = str | Sequence[str]
type Option = str | int

DEFAULT_OPTIONS: tuple[Option, ...] = (0, "", 1, 1)

INFO = (
    "LINUX ONLY: Launches an external application and feeds it the column"
    " data via standard input. Returns the standard output of the"
    " application. For security reasons, the programs that can be used"
    " have to be listed explicitly in the transformation configuration."
    " The first option is the number of the program you want to use."
    " The second option should be blank for historical reasons."
    " The third option, if set to 1, will HTML-escape the output (Default 1)."
    " The fourth option, if set to 1, will prevent wrapping and ensure that"
    " the output appears all on one line (Default 1)."
)


def load_programs(path: Path) -> dict[int, Command]:
    """Load allowed programs from ``[external.programs]`` in a TOML file."""
    with path.open("rb") as f:
        programs = load(f).get("external", {}).get("programs", {})
    return {int(index): command for index, command in programs.items()}


def _is_set(options: Sequence[Option], index: int) -> bool:
    """Whether an option is present and not blank."""
    return index < len(options) and str(options[index]).strip() != ""


class ExternalTransformation:
    """Runs one operator-approved program per transformed value.

    Nothing is run unless programs have been configured; the mapping goes from
    the small integer a user selects to the command that will be executed.
    """

    name = "External"

    def __init__(
        self,
        allowed_programs: Mapping[int, Command] | None = None,
        defaults: Sequence[Option] = DEFAULT_OPTIONS,
    ) -> None:
        self.allowed_programs = dict(allowed_programs or {})
        self.defaults = tuple(defaults)

    @staticmethod
    def info() -> str:
        """Describe the transformation and its options."""
        return INFO

    def options(self, options: Sequence[Option] = ()) -> list[Option]:
        """Fill blank or missing options from the defaults."""
        return [
            options[index] if _is_set(options, index) else default
            for index, default in enumerate(self.defaults)
        ]

    @staticmethod
    def no_wrap(options: Sequence[Option] = ()) -> bool:
        """Whether the output should be kept on one line."""
        if not _is_set(options, 3):
            return True
        return str(options[3]).strip() == "1"

    def program(self, index: Option) -> list[str]:
        """Return the command for an index, defaulting to the first program."""
        try:
            command = self.allowed_programs[int(index)]
        except (KeyError, ValueError):
            command = self.allowed_programs[min(self.allowed_programs)]
        return split(command) if isinstance(command, str) else list(command)

    def apply(self, buffer: str, options: Sequence[Option] = ()) -> str:
        """Feed the buffer to the selected program and return its output."""
        if not self.allowed_programs:
            return buffer

        program_index, extra_args, html_escape, _ = self.options(options)
        command = self.program(program_index)

        if str(extra_args).strip():
            logger.warning(
                "The external transformation command line options field is "
                "deprecated and ignored; add options to the program definition "
                "instead: %s",
                extra_args,
            )

        try:
            process = run(  # noqa: S603
                command,
                input=buffer,
                stdout=PIPE,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError:
            logger.exception("Could not start external program %s", command[0])
            output = buffer
        else:
            if process.returncode:
                logger.warning(
                    "External program %s exited with status %d",
                    command[0],
                    process.returncode,
                )
            output = process.stdout

        if str(html_escape).strip() in ("1", "2"):
            return str(escape(output))
        return output
