"""Terminal rendering for decoded payloads, with stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- the payload only (canonical value, raw body or XML
  document), so ``httpunwrap decode body.xml | jq`` works.
* **stderr** -- the detected format, warnings, errors and ``--verbose``
  traces.
* **TTY detection** -- syntax-highlighted output on an interactive terminal,
  plain text when piped.
* **Colour control** -- ``NO_COLOR``, ``TERM=dumb`` and ``--no-color``.

Plain mode prints one ``path<TAB>value`` line per leaf, with nested keys
joined by dots, so deeply nested XML stays greppable::

    return_code	SUCCESS
    coupons.coupon.0.id	c-1
    coupons.coupon.1.id	c-2

:class:`OutputManager` is created once in :func:`~httpunwrap.app.main_callback`
and installed with :func:`set_output`. The module-level functions delegate
to it.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from httpunwrap.models import DecodedPayload


class OutputFormat(str, Enum):
    """How payloads are written to stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes payloads to stdout and diagnostics to stderr.

    Args:
        format: Payload rendering. ``AUTO`` resolves from TTY detection.
        no_color: Disable colour and markup.
        quiet: Hide informational messages such as the detected format.
        verbose: Show debug messages (retries, request lines).
        output_file: Write payloads to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Payloads (stdout)
    # ------------------------------------------------------------------ #

    def render_payload(self, payload: DecodedPayload) -> None:
        """Report how *payload* was classified, then render its data.

        An empty body prints nothing on stdout. An undetected body is
        printed unchanged, after a warning.
        """
        if payload.format is None:
            self.info("Empty payload")
            return
        self.info(f"Format: {payload.format.value}")
        if payload.is_raw:
            self.warning("Format not detected, printing the raw body")
            self.render(payload.data, lexer=_lexer_for(payload.content_type))
        else:
            self.render(payload.data)

    def render(self, data: Any, lexer: Optional[str] = "json") -> None:
        """Render a canonical value or a raw body.

        Args:
            data: A canonical value, ``str`` or ``bytes``. Bytes are decoded
                as UTF-8 with replacement characters.
            lexer: Syntax highlighting for ``str`` data in rich mode
                (``"xml"``, ``"json"`` or ``None`` for none). Canonical
                values are always highlighted as JSON.
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        if self._output_file:
            self._write_file(data)
        elif self._format == OutputFormat.JSON:
            self.print_data(data if isinstance(data, str) else _to_json(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        else:
            self._render_rich(data, lexer)

    def print_data(self, text: str) -> None:
        """Print *text* to stdout, or append it to the output file."""
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(text if text.endswith("\n") else text + "\n")
        else:
            print(text, file=sys.stdout, flush=True)

    def _render_rich(self, data: Any, lexer: Optional[str]) -> None:
        if isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        elif lexer:
            self._stdout.print(Syntax(str(data), lexer, theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False, highlight=False)

    def _write_file(self, data: Any) -> None:
        assert self._output_file is not None
        content = data if isinstance(data, str) else _to_json(data)
        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content if content.endswith("\n") else content + "\n")

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational line. Hidden by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message)

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, "Warning:", "yellow")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, "Error:", "bold red")

    def debug(self, message: str) -> None:
        """Shown only with ``--verbose``."""
        if self._verbose:
            self._diagnostic(message, "[debug]", "dim")

    def _diagnostic(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color:
            print(f"{label} {message}" if label else message, file=sys.stderr, flush=True)
            return
        text = escape(message)
        if label:
            text = f"[{style}]{escape(label)}[/{style}] {text}"
        self._stderr.print(text, highlight=False)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _to_json(data: Any, indent: Optional[int] = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def _plain_lines(data: Any, path: str = "") -> Iterator[str]:
    """Yield ``path<TAB>value`` lines for every leaf of a canonical value.

    A bare scalar prints as itself; empty containers print as ``{}``/``[]``
    so that their key is not lost.
    """
    if isinstance(data, (dict, list)) and data:
        items = data.items() if isinstance(data, dict) else enumerate(data)
        for key, value in items:
            yield from _plain_lines(value, f"{path}.{key}" if path else str(key))
        return
    text = data if isinstance(data, str) else _to_json(data, indent=None)
    yield f"{path}\t{text}" if path else text


def _lexer_for(content_type: str) -> Optional[str]:
    lowered = content_type.lower()
    if "xml" in lowered or "html" in lowered:
        return "xml"
    if "json" in lowered:
        return "json"
    return None


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to anything) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global manager so the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


def render_payload(payload: DecodedPayload) -> None:
    get_output().render_payload(payload)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
