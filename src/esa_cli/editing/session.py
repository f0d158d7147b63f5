"""Editing session: a scratch file handed to an external editor.

One session edits one buffer at a time. The editor runs in the foreground
and the calling thread blocks until it exits.
"""

import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog

from esa_cli.services.exceptions import ProcessError

logger = structlog.get_logger()


class SessionState(str, Enum):
    IDLE = "idle"
    OPENED = "opened"
    CLOSED = "closed"


class EditingSession:
    """Scratch file plus editor process.

    Attributes:
        scratch_path: File the editor is pointed at
        editor_command: Command line of the editor (shell-style quoting)
        state: Current session state
        exit_status: Exit status of the last editor run, once closed
    """

    def __init__(self, scratch_path: Path, editor_command: str):
        """Initialize the session and make sure the scratch file exists.

        Args:
            scratch_path: Path of the scratch file
            editor_command: Editor command, e.g. "vim" or "code --wait"

        Raises:
            ProcessError: If the scratch directory or file cannot be created,
                or the editor command is empty
        """
        self.scratch_path = Path(scratch_path)
        self.editor_command = editor_command
        self.state = SessionState.IDLE
        self.exit_status: Optional[int] = None
        self._baseline: Optional[str] = None

        try:
            self._argv = shlex.split(editor_command)
        except ValueError as e:
            raise ProcessError(f"invalid editor command {editor_command!r}: {e}") from e
        if not self._argv:
            raise ProcessError("editor command is empty; set EDITOR or editor.command")

        try:
            self.scratch_path.parent.mkdir(parents=True, exist_ok=True)
            self.scratch_path.touch(exist_ok=True)
        except OSError as e:
            raise ProcessError(
                f"failed to create scratch file: {e}", path=str(self.scratch_path)
            ) from e

    def open(self, initial_text: str) -> int:
        """Write initial_text to the scratch file and run the editor on it.

        Blocks until the editor exits.

        Args:
            initial_text: Text to pre-fill; also the baseline for diff()

        Returns:
            Editor exit status (0 on success)

        Raises:
            ProcessError: If the scratch file cannot be written or the editor
                cannot be launched
        """
        try:
            # newline="" keeps the text byte-identical to what diff() compares against
            with open(self.scratch_path, "w", encoding="utf-8", newline="") as f:
                f.write(initial_text)
        except OSError as e:
            raise ProcessError(
                f"failed to write scratch file: {e}", path=str(self.scratch_path)
            ) from e

        self._baseline = initial_text
        argv = self._argv + [str(self.scratch_path)]
        self.state = SessionState.OPENED
        self.exit_status = None
        logger.debug("editor_opened", argv=argv)

        try:
            completed = subprocess.run(argv, check=False)
        except OSError as e:
            self.state = SessionState.IDLE
            self._baseline = None
            raise ProcessError(
                f"failed to launch editor {self._argv[0]!r}: {e}", path=self._argv[0]
            ) from e

        self.state = SessionState.CLOSED
        self.exit_status = completed.returncode
        logger.debug("editor_closed", exit_status=completed.returncode)
        return completed.returncode

    def read(self) -> str:
        """Read the scratch file's current content.

        Raises:
            ProcessError: If the scratch file cannot be read
        """
        try:
            with open(self.scratch_path, encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ProcessError(
                f"failed to read scratch file: {e}", path=str(self.scratch_path)
            ) from e

    def diff(self) -> Optional[str]:
        """Return the scratch content if it differs from what open() wrote.

        Any difference, including whitespace, counts as a change.

        Returns:
            None if unchanged, otherwise the new content

        Raises:
            RuntimeError: If called before open()
            ProcessError: If the scratch file cannot be read
        """
        if self._baseline is None:
            raise RuntimeError("diff() called before open()")

        content = self.read()
        if content == self._baseline:
            return None
        return content
