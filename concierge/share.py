"""Share targets for the shopping list: native share and clipboard."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from enum import Enum

from .errors import EnvironmentUnavailableError

# Tried in order when no clipboard command is configured.
_CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("termux-clipboard-set",),
)


class ShareOutcome(str, Enum):
    SHARED = "shared"
    CANCELLED = "cancelled"
    COPIED = "copied"
    FAILED = "failed"


class ShareTarget(ABC):
    """A platform share sheet or equivalent."""

    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def share(self, title: str, text: str) -> bool:
        """Offer ``text`` to the user.

        ``text`` is the complete message; ``title`` only labels the share
        sheet on platforms that show one.

        Returns:
            True if the user completed the share, False if they cancelled.

        Raises:
            EnvironmentUnavailableError: If the share mechanism cannot run.
        """
        ...


class CommandShareTarget(ShareTarget):
    """Shares through an external command that reads the text on stdin.

    ``termux-share -a send`` is the typical choice on Android. A zero exit
    status means the share went through; anything else is a cancellation.
    """

    def __init__(self, command: str) -> None:
        self._argv = shlex.split(command) if command else []

    def available(self) -> bool:
        return bool(self._argv) and shutil.which(self._argv[0]) is not None

    def share(self, title: str, text: str) -> bool:
        if not self.available():
            raise EnvironmentUnavailableError("No native share command available.")
        try:
            result = subprocess.run(
                self._argv,
                input=text,
                capture_output=True,
                text=True,
                timeout=120,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            raise EnvironmentUnavailableError(f"Share command failed: {e}") from e
        return result.returncode == 0


class Clipboard:
    """Copies text to the system clipboard via a command-line helper."""

    def __init__(self, command: str = "") -> None:
        self._command = shlex.split(command) if command else None

    def _resolve(self) -> list[str]:
        if self._command:
            if shutil.which(self._command[0]) is None:
                raise EnvironmentUnavailableError(
                    f"Clipboard command not found: {self._command[0]}"
                )
            return self._command
        for candidate in _CLIPBOARD_COMMANDS:
            if shutil.which(candidate[0]) is not None:
                return list(candidate)
        raise EnvironmentUnavailableError(
            "No clipboard helper found (pbcopy, wl-copy, xclip, xsel)."
        )

    def copy(self, text: str) -> None:
        """Copy ``text`` to the clipboard.

        Raises:
            EnvironmentUnavailableError: If no helper exists or it fails.
        """
        cmd = self._resolve()
        try:
            result = subprocess.run(
                cmd,
                input=text,
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            raise EnvironmentUnavailableError(f"Clipboard copy failed: {e}") from e
        if result.returncode != 0:
            raise EnvironmentUnavailableError(
                f"Clipboard copy failed: {result.stderr.strip()}"
            )
