"""Heuristic, regex-based extraction of PHP declarations.

Every public function here is side-effect free and never raises: malformed
source yields an empty or negative result.
"""

from __future__ import annotations

import bisect
import functools
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from accessor_nav.models import ClassDescriptor, NamingConvention, UseAlias

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

VISIBILITY = r"(?<![\w$@])(?:public|protected|private|var)"
TYPE_TOKEN = r"\??[\\\w]+(?:\s*[|&]\s*\??[\\\w]+)*"

_NAMESPACE_RE = re.compile(r"^\s*namespace\s+([\\\w]+)\s*[;{]", re.MULTILINE)
_CLASS_RE = re.compile(
    r"(?<![\w$:>])(?P<modifiers>(?:(?:abstract|final|readonly)\s+)*)class\s+(?P<name>[A-Za-z_]\w*)",
)
_USE_RE = re.compile(r"^\s*use\s+(?!function\b|const\b)([^;(]+);", re.MULTILINE)
_PROPERTY_RE = re.compile(
    rf"(?P<visibility>{VISIBILITY})(?P<modifiers>(?:\s+(?:static|readonly))*)\s+"
    rf"(?:(?P<type>{TYPE_TOKEN})\s+)?\$(?P<name>\w+)"
)
_CONST_RE = re.compile(
    rf"(?:(?P<visibility>public|protected|private)\s+)?(?:final\s+)?const\s+(?:(?P<type>{TYPE_TOKEN})\s+)?"
    r"(?P<name>[A-Za-z_]\w*)\s*="
)
_METHOD_RE = re.compile(
    r"(?P<visibility>public|protected|private)?(?P<modifiers>(?:\s*(?:static|abstract|final))*)\s*"
    r"function\s+&?(?P<name>[A-Za-z_]\w*)\s*\("
)
_DATA_CONVENTION_RE = re.compile(
    r"#\[\s*Data\s*\([^)]*namingConvention\s*:\s*NamingConvention::(\w+)[^)]*\)\s*\]",
)
_HYPERF_DATA_RE = re.compile(r"#\[\s*HyperfData\s*(?:\(\s*\))?\s*\]")
_EXTENDS_RE = re.compile(r"\bextends\s+([\\\w]+)")
_IMPLEMENTS_RE = re.compile(r"\bimplements\s+([\\\w\s,]+)")

SCALAR_TYPES = frozenset(
    {
        "array",
        "bool",
        "boolean",
        "callable",
        "false",
        "float",
        "double",
        "int",
        "integer",
        "iterable",
        "mixed",
        "never",
        "null",
        "object",
        "parent",
        "resource",
        "self",
        "static",
        "string",
        "true",
        "void",
        "$this",
    }
)


@dataclass(frozen=True)
class ClassSpan:
    name: str
    start: int
    body_start: int
    end: int
    header: str
    modifiers: str = ""

    @property
    def extends(self) -> str | None:
        match = _EXTENDS_RE.search(self.header)
        return match.group(1) if match else None

    @property
    def implements(self) -> list[str]:
        match = _IMPLEMENTS_RE.search(self.header)
        if not match:
            return []
        return [part.strip() for part in match.group(1).split(",") if part.strip()]


@dataclass(frozen=True)
class PropertyDeclaration:
    name: str
    offset: int
    visibility: str
    type: str | None
    form: str  # "property", "promoted" or "const"


@dataclass(frozen=True)
class MethodDeclaration:
    name: str
    offset: int
    visibility: str


def _heuristic(default: Callable[[], Any]) -> Callable[[Callable[..., _T]], Callable[..., _T]]:
    def decorator(func: Callable[..., _T]) -> Callable[..., _T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> _T:
            try:
                return func(*args, **kwargs)
            except Exception:  # noqa: BLE001
                logger.debug("Scanner %s failed; treating as no match", func.__name__, exc_info=True)
                result: _T = default()
                return result

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------


def _skip_string(text: str, index: int) -> int:
    """Return the index just past the quoted string starting at ``index``."""
    quote = text[index]
    i = index + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return len(text)


def _skip_comment(text: str, index: int) -> int | None:
    """Return the index past a comment starting at ``index``, or None if none starts there."""
    if text.startswith("//", index) or (text.startswith("#", index) and not text.startswith("#[", index)):
        newline = text.find("\n", index)
        return len(text) if newline == -1 else newline + 1
    if text.startswith("/*", index):
        close = text.find("*/", index + 2)
        return len(text) if close == -1 else close + 2
    return None


def matching_brace(text: str, open_index: int) -> int | None:
    """Index of the ``}`` balancing the ``{`` at ``open_index`` (strings and comments skipped)."""
    depth = 0
    i = open_index
    while i < len(text):
        char = text[i]
        if char in "'\"":
            i = _skip_string(text, i)
            continue
        skipped = _skip_comment(text, i)
        if skipped is not None:
            i = skipped
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _span_for(text: str, match: re.Match[str]) -> ClassSpan:
    code = code_only(text)
    body_start = code.find("{", match.end())
    if body_start == -1:
        return ClassSpan(
            name=match.group("name"),
            start=match.start(),
            body_start=len(text),
            end=len(text),
            header=code[match.end() :],
            modifiers=match.group("modifiers").strip(),
        )
    end = matching_brace(text, body_start)
    return ClassSpan(
        name=match.group("name"),
        start=match.start(),
        body_start=body_start,
        end=len(text) - 1 if end is None else end,
        header=code[match.end() : body_start],
        modifiers=match.group("modifiers").strip(),
    )


@functools.lru_cache(maxsize=32)
def _non_code_spans(text: str) -> tuple[tuple[int, int], ...]:
    """``(start, end)`` of every comment and string literal, in order."""
    spans: list[tuple[int, int]] = []
    i = 0
    while i < len(text):
        skipped = _skip_comment(text, i)
        if skipped is not None:
            spans.append((i, skipped))
            i = skipped
            continue
        if text[i] in "'\"":
            end = _skip_string(text, i)
            spans.append((i, end))
            i = end
            continue
        i += 1
    return tuple(spans)


@functools.lru_cache(maxsize=32)
def code_only(text: str) -> str:
    """``text`` with comments and string contents blanked; offsets and newlines are kept."""
    chars = list(text)
    for start, end in _non_code_spans(text):
        for i in range(start, end):
            if chars[i] != "\n":
                chars[i] = " "
    return "".join(chars)


def is_code_offset(text: str, offset: int) -> bool:
    """True when ``offset`` is outside every comment and string literal."""
    spans = _non_code_spans(text)
    index = bisect.bisect_right(spans, (offset, len(text) + 1)) - 1
    return index < 0 or not (spans[index][0] <= offset < spans[index][1])


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@_heuristic(lambda: None)
def find_namespace(text: str) -> str | None:
    match = _NAMESPACE_RE.search(code_only(text))
    return match.group(1).strip("\\") if match else None


@_heuristic(lambda: None)
def find_first_class(text: str) -> ClassSpan | None:
    """The first class declared in ``text`` with its brace-balanced extent."""
    for match in _CLASS_RE.finditer(code_only(text)):
        return _span_for(text, match)
    return None


@_heuristic(lambda: None)
def find_class(text: str, class_name: str) -> ClassSpan | None:
    """Declaration of ``class_name`` (plain, abstract, final or with extends/implements)."""
    for match in _CLASS_RE.finditer(code_only(text)):
        if match.group("name") == class_name:
            return _span_for(text, match)
    return None


@_heuristic(lambda: None)
def describe_class(text: str, file_path: str) -> ClassDescriptor | None:
    """The class a file resolves to: its first class declaration."""
    span = find_first_class(text)
    if span is None:
        return None
    return ClassDescriptor(short_name=span.name, namespace=find_namespace(text) or "", file_path=file_path)


@_heuristic(list)
def find_classes(text: str) -> list[ClassSpan]:
    return [_span_for(text, m) for m in _CLASS_RE.finditer(code_only(text))]


@_heuristic(lambda: False)
def declares_trait(text: str, trait_name: str) -> bool:
    return re.search(rf"\btrait\s+{re.escape(trait_name)}\b", code_only(text)) is not None


@_heuristic(dict)
def extract_use_aliases(text: str) -> dict[str, str]:
    """Map alias -> fully-qualified name for the file-level ``use`` imports.

    Handles ``as`` renames, comma lists and group imports (``use A\\{B, C as D};``).
    Trait ``use`` clauses inside class bodies are not imports and are ignored.
    """
    first_class = find_first_class(text)
    code = code_only(text)
    header = code[: first_class.start] if first_class else code

    aliases: dict[str, str] = {}
    for match in _USE_RE.finditer(header):
        clause = " ".join(match.group(1).split())
        if "{" in clause:
            prefix, _, rest = clause.partition("{")
            prefix = prefix.strip().strip("\\")
            members = rest.rstrip("}").split(",")
            entries = [f"{prefix}\\{member.strip()}" for member in members if member.strip()]
        else:
            entries = [part.strip() for part in clause.split(",") if part.strip()]

        for entry in entries:
            full, sep, alias = entry.partition(" as ")
            full = full.strip().strip("\\")
            if not full:
                continue
            name = alias.strip() if sep else full.rsplit("\\", 1)[-1]
            aliases.setdefault(name, full)
    return aliases


def use_aliases(text: str) -> list[UseAlias]:
    return [UseAlias(alias_name=name, fully_qualified_name=fqn) for name, fqn in extract_use_aliases(text).items()]


@_heuristic(list)
def find_properties(text: str) -> list[PropertyDeclaration]:
    """Property declarations, promoted constructor parameters and class constants."""
    found: list[PropertyDeclaration] = []
    promoted_spans: list[tuple[int, int]] = []

    code = code_only(text)
    for ctor in re.finditer(r"function\s+__construct\s*\(", code):
        close = _matching_paren(text, ctor.end() - 1)
        if close is not None:
            promoted_spans.append((ctor.end(), close))

    for match in _PROPERTY_RE.finditer(code):
        in_ctor = any(start <= match.start() < end for start, end in promoted_spans)
        found.append(
            PropertyDeclaration(
                name=match.group("name"),
                offset=match.start(),
                visibility=match.group("visibility"),
                type=normalize_type(match.group("type")),
                form="promoted" if in_ctor else "property",
            )
        )

    for match in _CONST_RE.finditer(code):
        found.append(
            PropertyDeclaration(
                name=match.group("name"),
                offset=match.start(),
                visibility=match.group("visibility") or "public",
                type=normalize_type(match.group("type")),
                form="const",
            )
        )

    found.sort(key=lambda p: p.offset)
    return found


@_heuristic(list)
def find_methods(text: str) -> list[MethodDeclaration]:
    methods: list[MethodDeclaration] = []
    for match in _METHOD_RE.finditer(code_only(text)):
        methods.append(
            MethodDeclaration(
                name=match.group("name"),
                offset=match.start() + (len(match.group(0)) - len(match.group(0).lstrip())),
                visibility=match.group("visibility") or "public",
            )
        )
    return methods


@_heuristic(lambda: None)
def find_method(text: str, method_name: str) -> MethodDeclaration | None:
    """Declaration of ``method_name`` (case-insensitive, like PHP method lookup)."""
    wanted = method_name.lower()
    for method in find_methods(text):
        if method.name.lower() == wanted:
            return method
    return None


@_heuristic(lambda: NamingConvention.NONE)
def detect_naming_convention(text: str) -> NamingConvention:
    """Convention declared by ``#[Data(namingConvention: ...)]`` or ``#[HyperfData]``.

    Without either annotation the result is ``NONE``; LOWER_CAMEL is never assumed.
    """
    match = _DATA_CONVENTION_RE.search(text)
    if match:
        try:
            return NamingConvention(match.group(1))
        except ValueError:
            return NamingConvention.NONE
    if _HYPERF_DATA_RE.search(text):
        return NamingConvention.LOWER_CAMEL
    return NamingConvention.NONE


def has_convention_annotation(text: str) -> bool:
    return bool(_DATA_CONVENTION_RE.search(text) or _HYPERF_DATA_RE.search(text))


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def normalize_type(raw: str | None) -> str | None:
    """Reduce ``?Foo``, ``Foo|null``, ``\\App\\Foo[]`` style type text to one class-like name."""
    if not raw:
        return None
    for part in re.split(r"[|&]", raw):
        name = part.strip().lstrip("?").strip()
        if name.endswith("[]"):
            continue
        if not name or name.lower().lstrip("\\") in SCALAR_TYPES:
            continue
        if not re.fullmatch(r"\\?[A-Za-z_][\w]*(?:\\[A-Za-z_]\w*)*", name):
            continue
        return name
    return None


@_heuristic(lambda: None)
def find_var_annotation(text: str, variable: str) -> str | None:
    """Type from a ``@var Type $variable`` doc annotation anywhere in ``text``.

    Exact forms naming the variable are tried first; then a bare ``@var Type``
    whose following five lines mention the variable.
    """
    name = re.escape(variable.lstrip("$"))
    exact_patterns = [
        rf"@var\s+({TYPE_TOKEN})\s+\${name}\b",
        rf"/\*\s*@var\s+({TYPE_TOKEN})\s+\${name}\s*\*/",
        rf"//\s*@var\s+({TYPE_TOKEN})\s+\${name}\b",
    ]
    for pattern in exact_patterns:
        for match in re.finditer(pattern, text):
            resolved = normalize_type(match.group(1))
            if resolved:
                return resolved

    lines = text.split("\n")
    needle = f"${variable.lstrip('$')}"
    for index, line in enumerate(lines):
        match = re.search(rf"@var\s+({TYPE_TOKEN})(?P<rest>.*)$", line)
        if not match:
            continue
        if re.match(r"\s+\$\w", match.group("rest")):
            # names some other variable
            continue
        for follow in lines[index : index + 5]:
            if re.search(rf"{re.escape(needle)}\b", follow):
                resolved = normalize_type(match.group(1))
                if resolved:
                    return resolved
                break
    return None


@_heuristic(lambda: (None, False))
def find_line_annotation(line: str, variable: str) -> tuple[str | None, bool]:
    """Inspect a single line for a ``@var`` annotation.

    Returns ``(type, names_variable)``; ``type`` is None when the line carries no
    usable annotation. ``names_variable`` is False for a bare ``@var Type``.
    """
    match = re.search(rf"@var\s+({TYPE_TOKEN})(?:\s+\$(\w+))?", line)
    if not match:
        return None, False
    named = match.group(2)
    if named is not None and named != variable.lstrip("$"):
        return None, False
    return normalize_type(match.group(1)), named is not None


@_heuristic(list)
def find_instantiations(text: str, variable: str) -> list[tuple[int, str]]:
    """``(offset, type)`` for every ``$variable = new Type`` or factory ``(Type::class)`` assignment."""
    name = re.escape(variable.lstrip("$"))
    found: list[tuple[int, str]] = []
    for match in re.finditer(rf"\${name}\s*=\s*new\s+(\\?[\w\\]+)\s*[(;\s]", text):
        found.append((match.start(), match.group(1)))
    for match in re.finditer(rf"\${name}\s*=\s*[^;=]*?\(\s*(\\?[\w\\]+)::class", text):
        found.append((match.start(), match.group(1)))
    found.sort()
    return found


@_heuristic(lambda: None)
def find_parameter_type(text: str, variable: str, before: int) -> str | None:
    """Declared type of ``variable`` in the nearest function signature preceding ``before``."""
    name = re.escape(variable.lstrip("$"))
    param_re = re.compile(
        rf"(?:^|[,(])\s*(?:#\[[^\]]*\]\s*)?(?:(?:public|protected|private|readonly)\s+)*"
        rf"({TYPE_TOKEN})\s+&?(?:\.\.\.)?\${name}\b"
    )
    signatures = list(re.finditer(r"\b(?:function|fn)\b\s*&?\s*\w*\s*\(", text[:before]))
    for signature in reversed(signatures):
        close = _matching_paren(text, signature.end() - 1)
        if close is None:
            continue
        params = text[signature.end() - 1 : close + 1]
        match = param_re.search(params)
        if match:
            return normalize_type(match.group(1))
    return None


@_heuristic(lambda: None)
def find_property_type(text: str, property_name: str) -> str | None:
    """Declared type of ``$property_name``: typed declaration, promoted parameter or ``@var`` doc."""
    name = re.escape(property_name.lstrip("$"))
    typed = re.search(
        rf"{VISIBILITY}(?:\s+(?:static|readonly))*\s+({TYPE_TOKEN})\s+\${name}\b",
        text,
    )
    if typed:
        resolved = normalize_type(typed.group(1))
        if resolved:
            return resolved
    documented = re.search(
        rf"/\*\*(?:(?!\*/).)*?@var\s+({TYPE_TOKEN})(?:(?!\*/).)*\*/\s*{VISIBILITY}(?:\s+(?:static|readonly))*"
        rf"(?:\s+{TYPE_TOKEN})?\s+\${name}\b",
        text,
        re.DOTALL,
    )
    if documented:
        return normalize_type(documented.group(1))
    return None


def _matching_paren(text: str, open_index: int) -> int | None:
    depth = 0
    i = open_index
    while i < len(text):
        char = text[i]
        if char in "'\"":
            i = _skip_string(text, i)
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def expand_type(type_name: str, aliases: dict[str, str]) -> str:
    """Expand a short or alias-qualified name through the import table.

    Names without a matching alias are returned unchanged (leading ``\\`` stripped).
    """
    if type_name.startswith("\\"):
        return type_name.lstrip("\\")
    head, sep, rest = type_name.partition("\\")
    if head in aliases:
        return f"{aliases[head]}\\{rest}" if sep else aliases[head]
    return type_name


def qualify(name: str, aliases: dict[str, str], namespace: str | None) -> list[str]:
    """Fully-qualified readings of a class reference written in a file, most likely first.

    ``\\Fqn`` is taken as-is, an imported head is alias-expanded, and any other
    name is tried in the file's namespace before the global one.
    """
    if name.startswith("\\"):
        return [name.lstrip("\\")]
    if name.partition("\\")[0] in aliases:
        return [expand_type(name, aliases)]
    if namespace:
        return [f"{namespace}\\{name}", name]
    return [name]
