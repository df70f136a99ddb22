"""Composable success filters for probe results.

A filter answers one question about a :class:`~alien.probe.result.Result`:
did this attempt succeed? Leaves look at the response; groups combine other
filters, and can be nested to any depth::

    AllOf([ResponseCode(200), Not(ResponseContains("error"))])

Filters are immutable and hold their members by value, so a tree can be
shared between probes and evaluated from any thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

from alien.core.exceptions import FilterDefinitionError
from alien.probe.result import Result


class ResultFilter(ABC):
    """Boolean predicate over a Result."""

    @abstractmethod
    def check(self, result: Result) -> bool:
        """Return True when the result meets this filter's criteria."""


@dataclass(frozen=True)
class ResponseCode(ResultFilter):
    """True when the response status code equals ``code``."""

    code: int

    def check(self, result: Result) -> bool:
        return result.code == self.code

    def __str__(self) -> str:
        return f"code == {self.code}"


@dataclass(frozen=True)
class ResponseContains(ResultFilter):
    """True when the response body contains ``text`` (case-sensitive)."""

    text: str

    def check(self, result: Result) -> bool:
        return self.text in result.body

    def __str__(self) -> str:
        return f"body contains {self.text!r}"


def _freeze(members: Iterable[ResultFilter]) -> tuple[ResultFilter, ...]:
    return tuple(members)


@dataclass(frozen=True)
class AllOf(ResultFilter):
    """True when every member is true. An empty group is true."""

    members: tuple[ResultFilter, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "members", _freeze(self.members))

    def check(self, result: Result) -> bool:
        return evaluate(self, result)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class AnyOf(ResultFilter):
    """True when at least one member is true. An empty group is false."""

    members: tuple[ResultFilter, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "members", _freeze(self.members))

    def check(self, result: Result) -> bool:
        return evaluate(self, result)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Not(ResultFilter):
    """True when its single member is false.

    To negate several conditions, wrap an AllOf or AnyOf.
    """

    member: ResultFilter

    def check(self, result: Result) -> bool:
        return evaluate(self, result)

    def __str__(self) -> str:
        return render(self)


def _children(node: ResultFilter) -> tuple[ResultFilter, ...]:
    if isinstance(node, Not):
        return (node.member,)
    return node.members


def evaluate(root: ResultFilter, result: Result) -> bool:
    """Evaluate a filter tree against a result.

    Groups short-circuit left to right. Walks the tree with an explicit
    stack, so nesting depth is bounded by memory rather than the
    interpreter's recursion limit.
    """
    stack: list[tuple[ResultFilter, Iterator[ResultFilter]]] = []
    node: ResultFilter | None = root

    while True:
        while isinstance(node, (AllOf, AnyOf, Not)):
            members = iter(_children(node))
            stack.append((node, members))
            node = next(members, None)

        if node is None:
            group, _ = stack.pop()
            value = isinstance(group, AllOf)
        else:
            value = bool(node.check(result))

        # Hand the value up until a group needs its next member
        node = None
        while stack:
            parent, members = stack[-1]
            if isinstance(parent, Not):
                stack.pop()
                value = not value
                continue

            decided = not value if isinstance(parent, AllOf) else value
            if not decided:
                node = next(members, None)
                if node is not None:
                    break
            stack.pop()

        if node is None:
            return value


def render(root: ResultFilter) -> str:
    """Human-readable form of a filter tree, e.g. ``all(code == 200, not(...))``."""
    parts: list[str] = []
    pending: list[ResultFilter | str] = [root]

    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, (AllOf, AnyOf, Not)):
            if isinstance(item, AllOf):
                name = "all"
            elif isinstance(item, AnyOf):
                name = "any"
            else:
                name = "not"
            tokens: list[ResultFilter | str] = [f"{name}("]
            for index, member in enumerate(_children(item)):
                if index:
                    tokens.append(", ")
                tokens.append(member)
            tokens.append(")")
            pending.extend(reversed(tokens))
        else:
            parts.append(str(item))

    return "".join(parts)


@dataclass(frozen=True)
class _Assemble:
    kind: str
    count: int


def _leaf_or_members(definition: Any) -> tuple[str, Any]:
    if not isinstance(definition, Mapping) or len(definition) != 1:
        raise FilterDefinitionError(
            f"Filter definition must be a mapping with one key, got {definition!r}"
        )

    (kind, value), = definition.items()

    if kind == "code":
        if isinstance(value, bool) or not isinstance(value, int):
            raise FilterDefinitionError(f"'code' expects an integer, got {value!r}")
    elif kind == "contains":
        if not isinstance(value, str):
            raise FilterDefinitionError(f"'contains' expects a string, got {value!r}")
    elif kind in ("all", "any"):
        if isinstance(value, (str, Mapping)) or not isinstance(value, Iterable):
            raise FilterDefinitionError(f"'{kind}' expects a list, got {value!r}")
    elif kind != "not":
        raise FilterDefinitionError(f"Unknown filter kind '{kind}'")

    return kind, value


def build_filter(definition: Mapping[str, Any]) -> ResultFilter:
    """Build a filter tree from its declarative form.

    Each mapping holds exactly one key:

    - ``code``: int status code
    - ``contains``: substring of the body
    - ``all`` / ``any``: list of nested definitions
    - ``not``: one nested definition

    Raises:
        FilterDefinitionError: If the definition is malformed
    """
    pending: list[Any] = [definition]
    built: list[ResultFilter] = []

    while pending:
        item = pending.pop()

        if isinstance(item, _Assemble):
            if item.kind == "not":
                built.append(Not(built.pop()))
                continue
            start = len(built) - item.count
            members = built[start:]
            del built[start:]
            built.append(AllOf(members) if item.kind == "all" else AnyOf(members))
            continue

        kind, value = _leaf_or_members(item)

        if kind == "code":
            built.append(ResponseCode(value))
        elif kind == "contains":
            built.append(ResponseContains(value))
        elif kind == "not":
            pending.append(_Assemble("not", 1))
            pending.append(value)
        else:
            values = list(value)
            pending.append(_Assemble(kind, len(values)))
            pending.extend(reversed(values))

    return built[0]
