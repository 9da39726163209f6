"""Infer the class of the expression an accessor or property is used on."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from accessor_nav.core import scanner
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.naming import ucfirst
from accessor_nav.models import Position

logger = logging.getLogger(__name__)

_IDENT_CHARS = re.compile(r"[A-Za-z0-9_]")
_NEW_HEAD_RE = re.compile(r"^\s*new\s+(\\?[A-Za-z_][\w\\]*)")
_NEW_BEFORE_RE = re.compile(r"new\s+(\\?[A-Za-z_][\w\\]*)\s*$")


class HeadKind(str, Enum):
    VARIABLE = "variable"
    THIS = "this"
    THIS_PROPERTY = "this_property"
    NEW = "new"


@dataclass(frozen=True)
class ChainHead:
    """Start of a member-access chain, e.g. ``$order`` in ``$order->getA()->getB()``."""

    kind: HeadKind
    name: str
    offset: int
    hops: int = 0


@dataclass
class InferenceContext:
    document: SourceDocument
    offset: int
    head: ChainHead
    lookback_lines: int = 15
    aliases: dict[str, str] = field(default_factory=dict)
    namespace: str | None = None

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def row(self) -> int:
        return self.document.position_at(self.offset).row

    @property
    def variable(self) -> str | None:
        return self.head.name if self.head.kind is HeadKind.VARIABLE else None


class InferenceStrategy(Protocol):
    name: str

    def attempt(self, ctx: InferenceContext) -> str | None: ...


# ---------------------------------------------------------------------------
# Receiver extraction
# ---------------------------------------------------------------------------


def _skip_space_back(text: str, index: int) -> int:
    while index >= 0 and text[index].isspace():
        index -= 1
    return index


def _arrow_before(text: str, index: int) -> int | None:
    """Index of the char before a ``->``/``?->`` ending at ``index``, else None."""
    index = _skip_space_back(text, index)
    if index >= 1 and text[index - 1 : index + 1] == "->":
        index -= 2
        if index >= 0 and text[index] == "?":
            index -= 1
        return index
    return None


def _open_paren_for(text: str, close_index: int, floor: int) -> int | None:
    depth = 0
    i = close_index
    while i >= floor:
        char = text[i]
        if char == ")":
            depth += 1
        elif char == "(":
            depth -= 1
            if depth == 0:
                return i
        i -= 1
    return None


def _identifier_before(text: str, index: int) -> tuple[str, int]:
    end = index + 1
    while index >= 0 and _IDENT_CHARS.match(text[index]):
        index -= 1
    return text[index + 1 : end], index


def find_chain_head(document: SourceDocument, word_offset: int, max_lines: int = 10) -> ChainHead | None:
    """Walk back from the member name at ``word_offset`` to the head of its chain.

    ``->name(args)`` links are skipped with paren balancing; the walk gives up
    after ``max_lines`` lines or on anything that is not a recognisable head.
    """
    text = document.text
    floor = document.offset_at(Position(row=max(document.position_at(word_offset).row - max_lines, 0), column=0))
    index = _arrow_before(text, word_offset - 1)
    if index is None:
        return None

    hops = 0
    property_link: str | None = None
    while index >= floor:
        index = _skip_space_back(text, index)
        if index < floor:
            return None
        char = text[index]

        if char == ")":
            open_index = _open_paren_for(text, index, floor)
            if open_index is None:
                return None
            before = _skip_space_back(text, open_index - 1)
            name, name_start = _identifier_before(text, before)
            if name:
                previous = _arrow_before(text, name_start)
                if previous is not None:
                    hops += 1
                    index = previous
                    continue
                new_match = _NEW_BEFORE_RE.search(text[max(floor, name_start - 200) : before + 1])
                if new_match:
                    return ChainHead(HeadKind.NEW, new_match.group(1), open_index, hops)
            inner = text[open_index + 1 : index]
            new_match = _NEW_HEAD_RE.match(inner)
            if new_match:
                return ChainHead(HeadKind.NEW, new_match.group(1), open_index, hops)
            return None

        name, name_start = _identifier_before(text, index)
        if not name:
            return None
        if name_start >= 0 and text[name_start] == "$":
            if name == "this":
                if property_link is not None:
                    return ChainHead(HeadKind.THIS_PROPERTY, property_link, name_start, hops)
                return ChainHead(HeadKind.THIS, name, name_start, hops)
            if property_link is not None:
                return None
            return ChainHead(HeadKind.VARIABLE, name, name_start, hops)

        # a property fetch link; only resolvable directly on $this
        previous = _arrow_before(text, name_start)
        if previous is None or property_link is not None or hops:
            return None
        property_link = name
        index = previous
    return None


# ---------------------------------------------------------------------------
# Strategies, in priority order
# ---------------------------------------------------------------------------


class AnnotationWindowStrategy:
    name = "annotation-window"

    def attempt(self, ctx: InferenceContext) -> str | None:
        variable = ctx.variable
        if variable is None:
            return None
        row = ctx.row
        for current in range(row, max(row - ctx.lookback_lines, 0) - 1, -1):
            line = ctx.document.line_text(current)
            if current != row and "function " in line:
                break
            type_name, named = scanner.find_line_annotation(line, variable)
            if type_name is None:
                continue
            if named:
                return type_name
            following = "\n".join(ctx.document.line_text(r) for r in range(current, min(current + 3, row + 1)))
            if re.search(rf"\${re.escape(variable)}\b", following):
                return type_name
        return None


class WholeFileAnnotationStrategy:
    name = "annotation-file"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.variable is None:
            return None
        return scanner.find_var_annotation(ctx.text, ctx.variable)


class InstantiationStrategy:
    """``$x = new Type(...)`` or a factory taking ``Type::class``; nearest preceding wins."""

    name = "instantiation"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.variable is None:
            return None
        found = scanner.find_instantiations(ctx.text, ctx.variable)
        if not found:
            return None
        preceding = [t for offset, t in found if offset < ctx.offset]
        chosen = preceding[-1] if preceding else found[0][1]
        if "\\" not in chosen:
            short = chosen
            for _, other in found:
                if "\\" in other and other.rstrip("\\").rsplit("\\", 1)[-1] == short:
                    return other
        return chosen


class ParameterHintStrategy:
    name = "parameter-hint"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.variable is None:
            return None
        return scanner.find_parameter_type(ctx.text, ctx.variable, ctx.offset)


class ChainedCallStrategy:
    """Every link of ``(new Type())->a()->b()`` is taken to be a ``Type``."""

    name = "chained-call"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.head.kind is not HeadKind.NEW:
            return None
        return scanner.normalize_type(ctx.head.name)


def _enclosing_class(ctx: InferenceContext) -> scanner.ClassSpan | None:
    for span in scanner.find_classes(ctx.text):
        if span.body_start <= ctx.offset <= span.end:
            return span
    return None


class SelfReferenceStrategy:
    name = "self-reference"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.head.kind is not HeadKind.THIS:
            return None
        span = _enclosing_class(ctx)
        if span is None:
            return None
        return f"\\{ctx.namespace}\\{span.name}" if ctx.namespace else f"\\{span.name}"


class DeclaredPropertyTypeStrategy:
    name = "declared-property"

    def attempt(self, ctx: InferenceContext) -> str | None:
        if ctx.head.kind is not HeadKind.THIS_PROPERTY:
            return None
        span = _enclosing_class(ctx)
        body = ctx.text[span.body_start : span.end + 1] if span else ctx.text
        return scanner.find_property_type(body, ctx.head.name)


class VariableNameStrategy:
    """``$productDto`` -> ``ProductDTO`` etc., only when the file imports that exact name."""

    name = "variable-name"
    suffixes = ("DTO", "Dto", "", "Entity", "Model")

    def attempt(self, ctx: InferenceContext) -> str | None:
        variable = ctx.variable
        if not variable or not ctx.aliases:
            return None
        base = ucfirst(re.sub(r"(?i)(dto|entity|model)$", "", variable) or variable)
        for suffix in self.suffixes:
            candidate = base + suffix
            if candidate in ctx.aliases:
                return candidate
        return None


DEFAULT_STRATEGIES: tuple[InferenceStrategy, ...] = (
    AnnotationWindowStrategy(),
    WholeFileAnnotationStrategy(),
    InstantiationStrategy(),
    ParameterHintStrategy(),
    ChainedCallStrategy(),
    SelfReferenceStrategy(),
    DeclaredPropertyTypeStrategy(),
    VariableNameStrategy(),
)


class TypeInferenceEngine:
    def __init__(
        self,
        strategies: tuple[InferenceStrategy, ...] | list[InferenceStrategy] = DEFAULT_STRATEGIES,
        annotation_window: int = 15,
        chain_lookback: int = 10,
    ) -> None:
        self.strategies = tuple(strategies)
        self.annotation_window = annotation_window
        self.chain_lookback = chain_lookback

    def context(self, document: SourceDocument, offset: int, head: ChainHead) -> InferenceContext:
        return InferenceContext(
            document=document,
            offset=offset,
            head=head,
            lookback_lines=self.annotation_window,
            aliases=scanner.extract_use_aliases(document.text),
            namespace=scanner.find_namespace(document.text),
        )

    def infer(self, ctx: InferenceContext) -> str | None:
        """Run strategies in order; the first hit is alias-expanded and returned."""
        for strategy in self.strategies:
            try:
                raw = strategy.attempt(ctx)
            except Exception:  # noqa: BLE001
                logger.debug("Strategy %s failed", strategy.name, exc_info=True)
                raw = None
            if raw:
                resolved = scanner.expand_type(raw, ctx.aliases)
                logger.debug("Strategy %s inferred %s for %s", strategy.name, resolved, ctx.head.name)
                return resolved
            logger.debug("Strategy %s: no match for %s", strategy.name, ctx.head.name)
        return None

    def infer_type(self, document: SourceDocument, position: Position) -> str | None:
        """Type of the receiver of the member name at ``position``."""
        span = document.word_range_at(position)
        if span is None:
            return None
        offset = document.offset_at(Position(row=position.row, column=span[0]))
        head = find_chain_head(document, offset, self.chain_lookback)
        if head is None:
            return None
        return self.infer(self.context(document, offset, head))

    def infer_variable(self, document: SourceDocument, variable: str, offset: int) -> str | None:
        head = ChainHead(HeadKind.VARIABLE, variable.lstrip("$"), offset)
        if head.name == "this":
            head = ChainHead(HeadKind.THIS, "this", offset)
        return self.infer(self.context(document, offset, head))
