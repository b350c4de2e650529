"""
Option codec for derived-image file names.

An option set travels inside the cache file name, e.g.
``width-200,height-100,quality-100,crop-true``. Pairs are joined with
``PARAM_SEPARATOR`` and each key is joined to its value with
``VALUE_SEPARATOR``. The same module encodes (link generation) and decodes
(incoming requests), so both sides always agree on the separators.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import MalformedOptions

OPTS_SEPARATOR = "__"
VALUE_SEPARATOR = "-"
PARAM_SEPARATOR = ","

OptionValue = Union[str, bool, int]
OptionPairs = Union["OptionSet", Mapping[str, Any], Iterable[Tuple[str, Any]]]

_COMPOSITE_TYPES = (dict, list, tuple, set, frozenset)


def _to_wire(value: Any) -> str:
    """Render a scalar the way it appears in a file name."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _COMPOSITE_TYPES):
        # Composite values are dropped on purpose; only the key survives.
        return ""
    if value is None:
        return ""
    return str(value)


class OptionSet:
    """Ordered association list of image options.

    The order pairs were given in is the canonical serialization order.
    Equality ignores order and compares values in their wire form, so
    ``OptionSet([("width", 200)]) == OptionSet([("width", "200")])``.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Optional[OptionPairs] = None):
        self._pairs: List[Tuple[str, OptionValue]] = []
        if pairs is None:
            return
        if isinstance(pairs, OptionSet):
            items: Iterable[Tuple[str, Any]] = pairs.items()
        elif isinstance(pairs, Mapping):
            items = pairs.items()
        else:
            items = pairs
        for key, value in items:
            self.set(key, value)

    def set(self, key: str, value: Any) -> None:
        """Replace ``key`` in place or append it at the end."""
        for index, (existing, _) in enumerate(self._pairs):
            if existing == key:
                self._pairs[index] = (key, value)
                return
        self._pairs.append((key, value))

    def get(self, key: str, default: Any = None) -> Any:
        for existing, value in self._pairs:
            if existing == key:
                return value
        return default

    def get_str(self, key: str, default: str = "") -> str:
        value = self.get(key)
        return default if value is None else _to_wire(value)

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Integer view of an option; empty or non-numeric values give ``default``."""
        raw = self.get_str(key)
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            try:
                return int(float(raw))
            except ValueError:
                return default

    def keys(self) -> List[str]:
        return [key for key, _ in self._pairs]

    def items(self) -> List[Tuple[str, OptionValue]]:
        return list(self._pairs)

    def with_defaults(self, defaults: Optional[OptionPairs]) -> "OptionSet":
        """Return a copy where missing keys are filled from ``defaults``.

        Keys already present keep their position; defaults are appended in
        their own order.
        """
        merged = OptionSet(self)
        for key, value in OptionSet(defaults).items():
            if key not in merged:
                merged.set(key, value)
        return merged

    def wire_items(self) -> List[Tuple[str, str]]:
        return [(key, _to_wire(value)) for key, value in self._pairs]

    def to_dict(self) -> dict:
        return dict(self.wire_items())

    def __contains__(self, key: object) -> bool:
        return any(existing == key for existing, _ in self._pairs)

    def __getitem__(self, key: str) -> OptionValue:
        for existing, value in self._pairs:
            if existing == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            other = OptionSet(other)
        if not isinstance(other, OptionSet):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(frozenset(self.to_dict().items()))

    def __repr__(self) -> str:
        return f"OptionSet({self._pairs!r})"


def _check_token(token: str, what: str) -> None:
    for separator in (PARAM_SEPARATOR, VALUE_SEPARATOR, OPTS_SEPARATOR, "/"):
        if separator in token:
            raise MalformedOptions(
                f"option {what} {token!r} contains reserved separator {separator!r}"
            )


def serialize_options(options: OptionPairs) -> str:
    """Encode options in canonical order as ``key-value,key-value``."""
    option_set = options if isinstance(options, OptionSet) else OptionSet(options)
    params = []
    for key, value in option_set.wire_items():
        if not key:
            raise MalformedOptions("option key must not be empty")
        if key.startswith("_"):
            # A leading underscore would merge with the options marker.
            raise MalformedOptions(f"option key {key!r} must not start with '_'")
        _check_token(key, "key")
        _check_token(value, "value")
        params.append(f"{key}{VALUE_SEPARATOR}{value}")
    return PARAM_SEPARATOR.join(params)


def deserialize_options(fragment: str) -> OptionSet:
    """Decode an options fragment; pairs keep the order they appear in."""
    options = OptionSet()
    if not fragment:
        return options
    for segment in fragment.split(PARAM_SEPARATOR):
        if segment.count(VALUE_SEPARATOR) != 1:
            raise MalformedOptions(f"malformed option segment {segment!r}")
        key, value = segment.split(VALUE_SEPARATOR)
        if not key:
            raise MalformedOptions(f"option segment {segment!r} has no key")
        options.set(key, value)
    return options
