r"""
clilib option schemas and plain arguments.

Overview
- ArgumentType: the closed set of value types an option operates in
  (STRING, INTEGER, BOOLEAN, OBJECT).
- OptionValue: a recorded value tagged with its ArgumentType; str() renders
  the payload the way queries concatenate it.
- Option: the schema of one recognized option: identity (short name, long
  name, synonyms), type, arity (nargs), whether it consumes following tokens
  at all (parametric), value bounds and relational constraints. Also the
  storage of the values recorded for it by a parse.
- PlainArgument: an unnamed token collected after the "--" delimiter, with
  optional bounds of its own.

Validation (on construction, before the instance is handed out)
- Names
  • short: exactly one character.
  • long: at least two characters.
  • both: no leading digit, no leading one of * - / . \n \t \r \0 or space,
    no whitespace anywhere, not equal to a synonym of the same option.
  • at least one of short/long must be given.
  Failing names raise InvalidNameError.
- nargs must be a non-negative integer (OptionDefinitionError otherwise).
- check() (run on every construction) raises OptionDefinitionError when
  minval > maxval, when a parametric option has nargs == 0, or when an option
  is both required and incompatible (by identity or by short/long name).

Mutation
- Schema attributes are read-only. copy.replace(option, **changes) builds a new,
  fully re-validated Option, so a partially invalid option never exists.
- Only the recorded values change during parsing (record()/clear()).

Quick example:
    >>> from clilib.options import Option, ArgumentType
    >>> threads = Option("t", "threads", type=ArgumentType.INTEGER, nargs=1, parametric=True, minval=1)
    >>> threads.names == {"t", "threads"}
    True
"""
import functools
import logging
import operator
import re
from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple

from rich.text import Text

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

# Leading characters no option name may start with.
_RESERVED = "*-/.\n\t\r\0 "


class ArgumentType(Enum):
    """
    value type an option operates in.

    - STRING: stored verbatim; minval/maxval bound the length.
    - INTEGER: strict base-10; minval/maxval bound the number.
    - BOOLEAN: any value records True; no content is interpreted.
    - OBJECT: opaque passthrough, no bounds enforced.
    """
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"


class OptionValue(NamedTuple):
    """
    one recorded value, tagged by the type it was coerced to.
    """
    type: ArgumentType
    data: object

    def __str__(self):
        return str(self.data)


class SchemaType(type):
    """
    Metaclass giving schema classes read-only properties and stable reprs.

    Responsibilities
    - Expose every name listed in __introspectable__ through mirror().
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in messages.
    - Provide __repr__/__rich_repr__ over __displayable__ (or __introspectable__).
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


def _validate_name(cls, kind, name, synonyms=(), /):
    """
    Internal: apply the naming rules to one candidate name.

    kind is "short", "long" or "synonym"; it selects the length rule and is
    echoed back in the fault so callers can tell which field was rejected.
    """
    if name is None:
        raise InvalidNameError(
            f"{cls.__typename__} {kind} name cannot be null",
            title="invalid name", code=FaultCode.INVALID_NAME, kind=kind, name=name,
        )
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {kind} name must be a string")

    if not name:
        reason = "cannot be empty"
    elif kind == "short" and len(name) != 1:
        reason = "must be a single character"
    elif kind == "long" and len(name) < 2:
        reason = "must be at least two characters long"
    elif name[0].isdecimal():
        reason = "cannot start with a digit"
    elif name[0] in _RESERVED:
        reason = "cannot start with %r" % name[0]
    elif any(char.isspace() for char in name):
        reason = "cannot contain whitespace"
    elif name in synonyms:
        reason = "cannot repeat one of its synonyms"
    else:
        return name

    raise InvalidNameError(
        f"{cls.__typename__} {kind} name {name!r} {reason}",
        title="invalid name",
        code=FaultCode.INVALID_NAME,
        hint="use a name that starts with a letter and has no whitespace (for example: 'o' or 'output')",
        kind=kind,
        name=name,
        docs=getdoc(FaultCode.INVALID_NAME),
    )


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate synonyms first, then short and long names against them.

    Mutates metadata in place: synonyms become a tuple (insertion order kept),
    unset names become None.
    """
    if isinstance(metadata["synonyms"], str) or not isinstance(metadata["synonyms"], Iterable):
        raise TypeError(f"{cls.__typename__} 'synonyms' must be an iterable of strings")

    synonyms = []
    for synonym in metadata["synonyms"]:
        _validate_name(cls, "synonym", synonym)
        if synonym in synonyms:
            raise InvalidNameError(
                f"{cls.__typename__} synonym {synonym!r} is repeated",
                title="invalid name", code=FaultCode.INVALID_NAME, kind="synonym", name=synonym,
            )
        synonyms.append(synonym)
    metadata["synonyms"] = tuple(synonyms)

    for kind in ("short", "long"):
        if metadata[kind] is not Unset:
            _validate_name(cls, kind, metadata[kind], synonyms)
        metadata[kind] = coalesce(metadata[kind])

    if metadata["short"] is None and metadata["long"] is None:
        raise OptionDefinitionError(
            f"{cls.__typename__} must specify a short or a long name",
            title="nameless option",
            code=FaultCode.OPTION_DEFINITION,
            hint="pass at least one of 'short' or 'long'",
        )


def _sanitize_parametric(cls, metadata, /):
    """
    Internal: validate type, arity, bounds and description.
    """
    if not isinstance(metadata["type"], ArgumentType):
        raise TypeError(f"{cls.__typename__} 'type' must be an argument-type")

    if not isinstance(nargs := metadata["nargs"], int) or isinstance(nargs, bool):
        raise TypeError(f"{cls.__typename__} 'nargs' must be an integer")
    if nargs < 0:
        raise OptionDefinitionError(
            f"{cls.__typename__} argument count cannot be negative (got {nargs})",
            title="negative argument count",
            code=FaultCode.OPTION_DEFINITION,
            hint="use 0 for options that take no values",
            nargs=nargs,
        )

    for name in ("minval", "maxval"):
        if not isinstance(bound := metadata[name], int | Unset) or isinstance(bound, bool):
            raise TypeError(f"{cls.__typename__} {name!r} must be an integer")
        metadata[name] = coalesce(bound)

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_relations(cls, metadata, /):
    """
    Internal: normalize 'incompatible' and 'requires' into tuples of options.

    Duplicates are rejected; order is kept for stable display.
    """
    for name in ("incompatible", "requires"):
        if not isinstance(metadata[name], Iterable):
            raise TypeError(f"{cls.__typename__} {name!r} must be an iterable of options")
        sanitized = []
        for option in metadata[name]:
            if not isinstance(option, Option):
                raise TypeError(f"{cls.__typename__} {name!r} must be an iterable of options")
            if any(option is other for other in sanitized):
                raise ValueError(f"{cls.__typename__} {name!r} cannot contain duplicates")
            sanitized.append(option)
        metadata[name] = tuple(sanitized)


class Option(metaclass=SchemaType):
    """
    Named option schema and per-parse value storage.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    - names: every name the option answers to (short, long and synonyms).
    - values: the OptionValue sequence recorded so far, in insertion order.
    """

    __introspectable__ = (
        "short",
        "long",
        "synonyms",
        "type",
        "nargs",
        "parametric",
        "minval",
        "maxval",
        "descr",
        "incompatible",
        "requires",
    )

    __displayable__ = (
        "short",
        "long",
        "synonyms",
        "type",
        "nargs",
        "parametric",
        "minval",
        "maxval",
    )

    def __new__(
            cls,
            short=Unset,
            long=Unset,
            *,
            synonyms=(),
            type=ArgumentType.STRING,
            nargs=0,
            parametric=False,
            minval=Unset,
            maxval=Unset,
            descr=Unset,
            incompatible=(),
            requires=()
    ):
        """
        Construct an Option with the provided metadata.

        Parameters
        - short: Unset | str
          Single-character name, matched by "-x".
        - long: Unset | str
          Name of two or more characters, matched by "--name" (or "-name").
        - synonyms: Iterable[str]
          Additional aliases resolving to the same option.
        - type: ArgumentType
          How value tokens are coerced (STRING by default).
        - nargs: int
          Number of value tokens the option consumes (ArgumentCount).
        - parametric: bool
          Whether the option consumes following tokens at all (AcceptsParams).
          When False, a match records a boolean True.
        - minval, maxval: Unset | int
          Inclusive bounds: integer magnitude for INTEGER, length for STRING.
        - descr: Unset | str
          Short usage description, None when Unset.
        - incompatible, requires: Iterable[Option]
          Options that must not / must be used together with this one. Only
          validated against each other here, never during parsing.
        """
        metadata = {
            "short": short,
            "long": long,
            "synonyms": synonyms,
            "type": type,
            "nargs": nargs,
            "parametric": bool(parametric),
            "minval": minval,
            "maxval": maxval,
            "descr": descr,
            "incompatible": incompatible,
            "requires": requires,
        }
        _sanitize_names(cls, metadata)
        _sanitize_parametric(cls, metadata)
        _sanitize_relations(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._values = []

        self.check()
        return self

    @property
    def names(self):
        return frozenset(filter(None, (self._short, self._long, *self._synonyms)))

    @property
    def values(self):
        return tuple(self._values)

    def check(self):
        """
        Verify the cross-field invariants of the schema.

        Raises OptionDefinitionError when
        - minval > maxval (both set),
        - the option is parametric but takes zero values,
        - an option is both required and incompatible, matched by identity or
          by an equal short or long name.
        """
        if self._minval is not None and self._maxval is not None and self._minval > self._maxval:
            raise OptionDefinitionError(
                f"{type(self).__typename__} {self} has invalid bounds [{self._minval}, {self._maxval}]",
                title="invalid bounds",
                code=FaultCode.OPTION_DEFINITION,
                hint="make 'minval' lower than or equal to 'maxval'",
                option=self,
                minval=self._minval,
                maxval=self._maxval,
            )

        if self._parametric and self._nargs == 0:
            raise OptionDefinitionError(
                f"{type(self).__typename__} {self} accepts parameters but takes zero arguments",
                title="incompatible settings",
                code=FaultCode.OPTION_DEFINITION,
                hint="set 'nargs' to a positive number or 'parametric' to false",
                option=self,
            )

        for incompatible in self._incompatible:
            for required in self._requires:
                if (
                        required is incompatible or
                        required.short is not None and required.short == incompatible.short or
                        required.long is not None and required.long == incompatible.long
                ):
                    raise OptionDefinitionError(
                        f"required option {required} is also among the incompatible options of {self}",
                        title="conflicting relations",
                        code=FaultCode.OPTION_DEFINITION,
                        hint="an option cannot be required and incompatible at the same time",
                        option=self,
                        relation=required,
                    )

    def record(self, value, /):
        """
        Append one OptionValue to the recorded values.
        """
        if not isinstance(value, OptionValue):
            raise TypeError("record() argument must be an option-value")
        self._values.append(value)

    def clear(self):
        """
        Drop every recorded value (the schema is untouched).
        """
        self._values.clear()

    def __str__(self):
        return "--" + self._long if self._long is not None else "-" + self._short

    def __replace__(self, *unused, **changes):
        assert not unused, "positional arguments are not allowed"
        fields = {name: getattr(self, "_" + name) for name in type(self).__introspectable__}
        for name in ("short", "long", "minval", "maxval", "descr"):
            if fields[name] is None:
                fields[name] = Unset
        logger.debug("rebuilding %s with %s", self, sorted(changes))
        return type(self)(**{**fields, **changes})


class PlainArgument(metaclass=SchemaType):
    """
    Unnamed token collected after the end-of-options delimiter.

    Bounds are optional. When the value is a base-10 integer literal they bound
    the number, otherwise they bound the length of the text.
    """

    __introspectable__ = (
        "value",
        "minval",
        "maxval",
    )

    def __new__(cls, value, /, minval=Unset, maxval=Unset):
        if not isinstance(value, str):
            raise TypeError(f"{cls.__typename__} 'value' must be a string")
        for name, bound in (("minval", minval), ("maxval", maxval)):
            if not isinstance(bound, int | Unset) or isinstance(bound, bool):
                raise TypeError(f"{cls.__typename__} {name!r} must be an integer")

        self = super().__new__(cls)
        self._value = value
        self._minval = coalesce(minval)
        self._maxval = coalesce(maxval)

        if self._minval is not None and self._maxval is not None and self._minval > self._maxval:
            raise OptionDefinitionError(
                f"{cls.__typename__} has invalid bounds [{self._minval}, {self._maxval}]",
                title="invalid bounds",
                code=FaultCode.OPTION_DEFINITION,
                minval=self._minval,
                maxval=self._maxval,
            )

        self.check()
        return self

    def check(self):
        """
        Raise OutOfBoundsError when the value falls outside its bounds.
        """
        if (number := integer(self._value)) is not Unset:
            measure, what = number, "value"
        else:
            measure, what = len(self._value), "length"

        if not inbounds(measure, self._minval, self._maxval):
            raise OutOfBoundsError(
                f"plain argument {self._value!r} is out of bounds ({what} {measure} not in "
                f"[{'-inf' if self._minval is None else self._minval}, {'inf' if self._maxval is None else self._maxval}])",
                title="value out of bounds",
                code=FaultCode.OUT_OF_BOUNDS,
                hint="pass a plain argument within the accepted range",
                value=self._value,
                minval=self._minval,
                maxval=self._maxval,
                docs=getdoc(FaultCode.OUT_OF_BOUNDS),
            )

    def __str__(self):
        return self._value


__all__ = (
    # Types
    "ArgumentType",
    "OptionValue",

    # Classes (schemas)
    "Option",
    "PlainArgument",
)

# Not part of the public API.
del SchemaType
