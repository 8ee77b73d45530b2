"""
clilib faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every failure the engine
  can raise. Codes are grouped by domain (definition, registry, parsing).
- CommandException: base type that carries a message plus structured, read-only
  options (code, title, hint and kind-specific context such as the option,
  the offending token or the expected/actual value counts) and knows how to
  render itself with rich.
- The closed taxonomy: one exception class per FaultCode.
- trigger(): central entry point to surface a fault (raise, or render + exit
  when running in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Integration
- Option construction raises definition faults directly.
- Command routes registry and parse faults through Command.trigger(), which
  merges its runtime flags (shell/fancy/colorful) before calling trigger().
- In non-shell mode the fault is raised; in shell mode it is printed to stderr
  via rich and the process exits with status 1.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - definition (2110x)
      • INVALID_NAME, OPTION_DEFINITION
    - registry (2120x)
      • DUPLICATE_NAME, MISSING_OPTION
    - parsing (2130x)
      • OPTION_NAME, OPTION_PARSE, UNSUPPORTED_TYPE, OUT_OF_BOUNDS

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- definition errors (211xx) ---
    INVALID_NAME                = 21101
    OPTION_DEFINITION           = 21102

    # --- registry errors (212xx) ---
    DUPLICATE_NAME              = 21201
    MISSING_OPTION              = 21202

    # --- parsing errors (213xx) ---
    OPTION_NAME                 = 21301
    OPTION_PARSE                = 21302
    UNSUPPORTED_TYPE            = 21303
    OUT_OF_BOUNDS               = 21304

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base of every clilib fault.

    attributes
    - message: one-sentence, lowercased description.
    - options: read-only mapping with the structured context of the fault.
    - code: shortcut for options["code"] (None when not provided).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", getattr(tool, "name", "clilib")), styler("prog-name"))
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"
        title = self.options.get("title", type(self).__name__)

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, styler("code")),
            " | ",
            text(title.title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left", width=console.width - 4)

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidNameError(CommandException):
    """a short name, long name or synonym breaks the naming rules."""
class OptionDefinitionError(CommandException):
    """an option schema is internally inconsistent."""
class DuplicateNameError(CommandException):
    """an option name collides with an already registered option."""
class MissingOptionError(CommandException):
    """a name lookup found no registered option."""
class OptionNameError(CommandException):
    """a required option was absent after a full parse."""
class OptionParseError(CommandException):
    """arity mismatch, or a value given to a parameterless option."""
class UnsupportedTypeError(CommandException):
    """a value token cannot be coerced to the option's declared type."""
class OutOfBoundsError(CommandException):
    """a coerced value (or a string length) falls outside [minval, maxval]."""


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise the fault is raised.

    typical options
    - tool, shell, fancy, colorful, title, code, hint, docs, and any other
      context the reporter may want to show (e.g., token/index/option).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "InvalidNameError",
    "OptionDefinitionError",
    "DuplicateNameError",
    "MissingOptionError",
    "OptionNameError",
    "OptionParseError",
    "UnsupportedTypeError",
    "OutOfBoundsError",
    "FaultCode",
    "trigger",
    "getdoc",
)
