"""
clilib command layer: register options, parse argument vectors, query results.

What this module provides
- Command: owns the option schemas of one command and
  • registers them, rejecting name collisions eagerly (add_option/add_options),
  • resolves names (short, long or synonym) to options (get_option),
  • walks an argument vector with a two-mode state machine, coercing and
    bounds-checking every value token and recording it on its option (parse),
  • answers queries about the recorded values (get_option_values, is_given).
- invoke(obj, prompt): convenience runner reading sys.argv when no prompt is given.

Parsing rules
- "--" switches permanently to plain collection; every later token becomes a
  PlainArgument.
- "--name" and "-name" select an option. The option in progress is settled
  first: it must have received exactly its declared number of values.
  Options that take no parameters record True as soon as they are selected.
- Any other token is the next value of the current option, coerced by the
  option's ArgumentType.
- At the end of input every required option must have been matched.

Faults
- Every failure goes through Command.trigger(): raised to the caller by
  default, rendered with rich and exiting with status 1 when shell=True.
- Parsing is not transactional: values recorded before a fault stay recorded.
  Use reset() (or a fresh Command) before parsing again.

Quick start
    from clilib import Command, Option, ArgumentType

    numactl = Command("numactl", "control NUMA policy", "1.0.0")
    numactl.add_options(
        (Option("p", "preferred", type=ArgumentType.INTEGER, nargs=1, parametric=True, minval=0, maxval=3), False),
        (Option("H", "hardware"), False),
    )
    numactl.parse(["-p", "2", "--", "ls", "-l"])
    numactl.get_option_values("preferred")   # "2"
    [str(plain) for plain in numactl.plains]  # ["ls", "-l"]
"""
import functools
import logging
import operator
import os.path
import re
import sys
from collections import deque
from collections.abc import Iterable

from rich.text import Text

from .faults import *
from .options import ArgumentType, Option, OptionValue, PlainArgument
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass that gives Command its read-only properties and stable reprs.

    - __typename__ is derived from the class name for messages.
    - Every name in __introspectable__ is exposed through mirror().
    - __repr__/__rich_repr__ show __displayable__ (or __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_strings(cls, metadata):
    """
    Normalize the identity scalars (name, descr, version).

    - Validates type: str | Text | Unset.
    - Trims strings; empty strings are rejected.
    - Resolves Unset to None.
    """
    for name in ("name", "descr", "version"):
        if not isinstance(object := metadata[name], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)


def _process_runtime(cls, metadata):
    """
    Validate the parsing and rendering settings.

    - delimiter: a single character, used only by parse_string().
    - plainmin/plainmax: bounds handed to every collected PlainArgument.
    - shell/fancy/colorful: fault rendering flags (coerced to bool).
    """
    if not isinstance(delimiter := metadata["delimiter"], str):
        raise TypeError(f"{cls.__typename__} 'delimiter' must be a string")
    elif len(delimiter) != 1:
        raise ValueError(f"{cls.__typename__} 'delimiter' must be a single character")

    for name in ("plainmin", "plainmax"):
        if not isinstance(bound := metadata[name], int | Unset) or isinstance(bound, bool):
            raise TypeError(f"{cls.__typename__} {name!r} must be an integer")

    if metadata["plainmin"] is not Unset and metadata["plainmax"] is not Unset:
        if metadata["plainmin"] > metadata["plainmax"]:
            raise ValueError(f"{cls.__typename__} 'plainmin' cannot be greater than 'plainmax'")

    metadata["plainmin"] = coalesce(metadata["plainmin"])
    metadata["plainmax"] = coalesce(metadata["plainmax"])

    for name in ("shell", "fancy", "colorful"):
        metadata[name] = bool(metadata[name])


class Command(metaclass=CommandType):
    """
    A command: its identity, its registered options and the parser over them.

    Lifecycle
    - Constructed once with its identity (name, descr, version are read-only).
    - Options are registered with add_option()/add_options(); the command
      borrows the Option instances, it does not copy them.
    - parse()/parse_string() record values on the registered options and
      collect plain arguments. Nothing is reset between parses; call reset().

    Concurrency
    - One in-flight parse per instance. The recorded values and the parser's
      position are plain instance state.
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "delimiter",
        "plainmin",
        "plainmax",
        "options",
        "required",
        "plains",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "options",
        "required",
        "plains",
    )

    def __new__(
            cls,
            name=Unset,
            descr=Unset,
            version=Unset,
            /,
            *,
            delimiter=" ",
            plainmin=Unset,
            plainmax=Unset,
            shell=False,
            fancy=False,
            colorful=False
    ):
        """
        Construct a Command.

        Parameters
        - name: Unset | str
          Command name; defaults to the basename of sys.argv[0].
        - descr: Unset | str
          General usage text. None when Unset.
        - version: Unset | str
          Version label. None when Unset.
        - delimiter: str
          Single character separating tokens for parse_string() (default: space).
        - plainmin, plainmax: Unset | int
          Bounds applied to every plain argument collected after "--".
        - shell: bool
          When True, faults are rendered to stderr and the process exits(1)
          instead of raising.
        - fancy, colorful: bool
          Rendering style for shell mode (panel chrome, colors).
        """
        metadata = {
            "name": coalesce(name, os.path.basename(sys.argv[0]) or "command"),
            "descr": descr,
            "version": version,
            "delimiter": delimiter,
            "plainmin": plainmin,
            "plainmax": plainmax,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _process_strings(cls, metadata)
        _process_runtime(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._options = []
        self._required = []
        self._plains = []
        self._index = 0
        return self

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this command's rendering flags merged in.

        Raises the fault (shell=False) or renders it and exits (shell=True).
        """
        trigger(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    # ── registry ────────────────────────────────────────────────────────────

    def add_option(self, option, /, required=False):
        """
        Register an option, and mark it as required when asked to.

        Raises DuplicateNameError when any name of the option (short, long or
        synonym) is already used by a registered option. Nothing is registered
        in that case.
        """
        if not isinstance(option, Option):
            raise TypeError("add_option() argument must be an option")

        for registered in self._options:
            if clashes := option.names & registered.names:
                return self.trigger(DuplicateNameError(
                    "an option named %s already exists in %r" % (
                        " or ".join(map(repr, sorted(clashes))), self.name
                    ),
                    title="duplicate option name",
                    code=FaultCode.DUPLICATE_NAME,
                    hint="give %s a name that no other option of %r uses" % (option, self.name),
                    option=option,
                    registered=registered,
                    names=frozenset(clashes),
                    docs=getdoc(FaultCode.DUPLICATE_NAME),
                ))

        self._options.append(option)
        if required:
            self._required.append(option)
        logger.debug("registered %s in %r (required=%s)", option, self.name, bool(required))

    def add_options(self, *options):
        """
        Register a batch of options in order.

        Each item is either an Option (not required) or an (option, required)
        pair. Registration stops at the first failure; options registered
        before it stay registered.
        """
        for item in options:
            if isinstance(item, Option):
                self.add_option(item)
            else:
                option, required = item
                self.add_option(option, required)

    def _lookup(self, name):
        for option in self._options:
            if name == option.short or name == option.long or name in option.synonyms:
                return option
        return Unset

    def get_option(self, name, /):
        """
        Return the option whose short name, long name or any synonym is name.

        Raises MissingOptionError when none matches.
        """
        if (option := self._lookup(name)) is Unset:
            return self.trigger(MissingOptionError(
                "there is no option named %r in %r" % (name, self.name),
                title="missing option",
                code=FaultCode.MISSING_OPTION,
                hint="check the spelling; registered options are %s" % (
                    ", ".join(map(str, self._options)) or "none"
                ),
                name=name,
                docs=getdoc(FaultCode.MISSING_OPTION),
            ))
        return option

    def has_option(self, name, /):
        """
        Tell whether an option with this short or long name is registered.

        Synonyms are not considered here (get_option and parsing do match them).
        """
        return any(name == option.short or name == option.long for option in self._options)

    # ── queries ─────────────────────────────────────────────────────────────

    def get_option_values(self, name, /):
        """
        Return the values recorded for an option, rendered as text and
        concatenated in insertion order without separator.

        An option without recorded values yields an empty string.
        """
        return "".join(map(str, self.get_option(name).values))

    def get_values(self, name, /):
        """
        Return the typed payloads recorded for an option, in insertion order.
        """
        return tuple(value.data for value in self.get_option(name).values)

    def is_given(self, name, /):
        """
        Tell whether the option recorded at least one value (it was matched).
        """
        return bool(self.get_option(name).values)

    def reset(self):
        """
        Forget every recorded value and collected plain argument.
        """
        for option in self._options:
            option.clear()
        self._plains.clear()
        logger.debug("reset %r", self.name)

    # ── parsing ─────────────────────────────────────────────────────────────

    @staticmethod
    def _switch(token):
        """
        Return the option name a token spells, or None when it is a value.

        "-5" style tokens are values: no option name may start with a digit.
        """
        if token.startswith("--") and len(token) > 2:
            return token[2:]
        if token.startswith("-") and len(token) >= 2 and integer(token) is Unset:
            return token[1:]
        return None

    def _settle(self, option, count, start):
        """
        Boundary check for the option in progress: all its values must be present.
        """
        if count < option.nargs:
            self.trigger(OptionParseError(
                "option %r at %s position expected %d arguments, got %d" % (
                    str(option), ordinal(start), option.nargs, count
                ),
                title="not enough values",
                code=FaultCode.OPTION_PARSE,
                hint="pass %d value(s) after %s" % (option.nargs, option),
                option=option,
                index=start,
                expected=option.nargs,
                actual=count,
                docs=getdoc(FaultCode.OPTION_PARSE),
            ))

    def _coerce(self, option, token):
        """
        Convert one value token according to the option's type and bounds.
        """
        match option.type:
            case ArgumentType.STRING:
                if not inbounds(len(token), option.minval, option.maxval):
                    return self.trigger(OutOfBoundsError(
                        "value %r for option %r at %s position has to be of length from %s to %s" % (
                            token, str(option), ordinal(self._index),
                            0 if option.minval is None else option.minval,
                            "any" if option.maxval is None else option.maxval,
                        ),
                        title="value out of bounds",
                        code=FaultCode.OUT_OF_BOUNDS,
                        hint="pass a value of accepted length",
                        option=option,
                        token=token,
                        index=self._index,
                        value=len(token),
                        minval=option.minval,
                        maxval=option.maxval,
                        docs=getdoc(FaultCode.OUT_OF_BOUNDS),
                    ))
                return OptionValue(ArgumentType.STRING, token)
            case ArgumentType.INTEGER:
                if (number := integer(token)) is Unset:
                    return self.trigger(UnsupportedTypeError(
                        "value %r for option %r at %s position has to be a base-10 integer" % (
                            token, str(option), ordinal(self._index)
                        ),
                        title="unsupported value type",
                        code=FaultCode.UNSUPPORTED_TYPE,
                        hint="pass digits only, optionally signed (for example: %s 42)" % option,
                        option=option,
                        token=token,
                        index=self._index,
                        expected=ArgumentType.INTEGER,
                        docs=getdoc(FaultCode.UNSUPPORTED_TYPE),
                    ))
                if not inbounds(number, option.minval, option.maxval):
                    return self.trigger(OutOfBoundsError(
                        "value %d for option %r at %s position has to be from %s to %s" % (
                            number, str(option), ordinal(self._index),
                            "-inf" if option.minval is None else option.minval,
                            "inf" if option.maxval is None else option.maxval,
                        ),
                        title="value out of bounds",
                        code=FaultCode.OUT_OF_BOUNDS,
                        hint="pass a number within the accepted range",
                        option=option,
                        token=token,
                        index=self._index,
                        value=number,
                        minval=option.minval,
                        maxval=option.maxval,
                        docs=getdoc(FaultCode.OUT_OF_BOUNDS),
                    ))
                return OptionValue(ArgumentType.INTEGER, number)
            case ArgumentType.BOOLEAN:
                return OptionValue(ArgumentType.BOOLEAN, True)
            case ArgumentType.OBJECT:
                return OptionValue(ArgumentType.OBJECT, token)

        raise RuntimeError("unexpected argument type")

    def _collect(self, token):
        """
        Append a plain argument, validated against the command's plain bounds.
        """
        try:
            plain = PlainArgument(
                token,
                Unset if self._plainmin is None else self._plainmin,
                Unset if self._plainmax is None else self._plainmax,
            )
        except OutOfBoundsError as fault:
            return self.trigger(fault, token=token, index=self._index)
        self._plains.append(plain)

    def parse(self, args, /):
        """
        Parse an argument vector against the registered options.

        phases
        - option scanning: classify each token as the end-of-options marker,
          an option name, or a value of the current option.
        - plain collection (after "--"): every token becomes a PlainArgument.
        - end of input: settle the option in progress, then verify that every
          required option was matched (OptionNameError for the first missing).

        faults
        - MissingOptionError: unknown option name.
        - OptionParseError: too few/too many values, a value for an option
          that takes none, or a value before any option.
        - UnsupportedTypeError / OutOfBoundsError: coercion failures.
        - OptionNameError: a required option is absent.
        """
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")
        tokens = deque(args)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be an iterable of strings")

        logger.debug("parsing %d token(s) for %r", len(tokens), self.name)

        self._index = 0
        plain = False
        current = None
        count = 0
        start = 0
        found = []

        while tokens:
            token = tokens.popleft()
            self._index += 1

            if plain:
                self._collect(token)
                continue

            if token == "--":
                plain = True
                logger.debug("end of options at %s position", ordinal(self._index))
                continue

            if (name := self._switch(token)) is not None:
                if current is not None:
                    self._settle(current, count, start)

                if (option := self._lookup(name)) is Unset:
                    return self.trigger(MissingOptionError(
                        "unknown option %r at %s position" % (token, ordinal(self._index)),
                        title="unknown option",
                        code=FaultCode.MISSING_OPTION,
                        hint="check the spelling; registered options are %s" % (
                            ", ".join(map(str, self._options)) or "none"
                        ),
                        name=name,
                        token=token,
                        index=self._index,
                        docs=getdoc(FaultCode.MISSING_OPTION),
                    ))

                current, count, start = option, 0, self._index
                found.append(option)
                logger.debug("matched %s at %s position", option, ordinal(start))
                if not option.parametric:
                    option.record(OptionValue(ArgumentType.BOOLEAN, True))
                continue

            if current is None:
                return self.trigger(OptionParseError(
                    "value %r at %s position does not follow any option" % (token, ordinal(self._index)),
                    title="unexpected value",
                    code=FaultCode.OPTION_PARSE,
                    hint="put values after their option, or after '--' for plain arguments",
                    token=token,
                    index=self._index,
                    docs=getdoc(FaultCode.OPTION_PARSE),
                ))

            count += 1
            if not current.parametric:
                return self.trigger(OptionParseError(
                    "option %r at %s position does not accept arguments" % (str(current), ordinal(start)),
                    title="unexpected value",
                    code=FaultCode.OPTION_PARSE,
                    hint="remove %r or put it after '--' as a plain argument" % token,
                    option=current,
                    token=token,
                    index=self._index,
                    expected=0,
                    actual=count,
                    docs=getdoc(FaultCode.OPTION_PARSE),
                ))
            if count > current.nargs:
                return self.trigger(OptionParseError(
                    "option %r at %s position expected %d arguments, got %d" % (
                        str(current), ordinal(start), current.nargs, count
                    ),
                    title="too many values",
                    code=FaultCode.OPTION_PARSE,
                    hint="remove the extra value %r" % token,
                    option=current,
                    token=token,
                    index=self._index,
                    expected=current.nargs,
                    actual=count,
                    docs=getdoc(FaultCode.OPTION_PARSE),
                ))

            current.record(self._coerce(current, token))

        if current is not None:
            self._settle(current, count, start)

        for option in self._required:
            if not any(option is other for other in found):
                return self.trigger(OptionNameError(
                    "required option %r was not found" % str(option),
                    title="missing required option",
                    code=FaultCode.OPTION_NAME,
                    hint="add %s to the command line" % option,
                    option=option,
                    docs=getdoc(FaultCode.OPTION_NAME),
                ))

        logger.debug("parsed %r: %d option(s) matched, %d plain argument(s)", self.name, len(found), len(self._plains))

    def parse_string(self, line, /):
        """
        Split a single string on the delimiter, drop empty fields, and parse.
        """
        if not isinstance(line, str):
            raise TypeError("parse_string() argument must be a string")
        self.parse([field for field in line.split(self._delimiter) if field])

    def __invoke__(self, prompt=Unset):
        """
        Parse a prompt.

        - Unset: read tokens from sys.argv[1:].
        - str: split on the delimiter (see parse_string).
        - Iterable[str]: pre-tokenized vector.
        """
        if prompt is Unset:
            self.parse(sys.argv[1:])
        elif isinstance(prompt, str):
            self.parse_string(prompt)
        elif isinstance(prompt, Iterable):
            self.parse(prompt)
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands.

    - prompt Unset: parse sys.argv[1:].
    - prompt str: split on the command delimiter.
    - prompt Iterable[str]: parse as-is.

    Raises TypeError when object does not implement __invoke__.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        object.__invoke__(prompt)
        return

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "invoke",
)

# Not part of the public API.
del CommandType
