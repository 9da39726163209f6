"""Member completions after ``->`` and ``@method`` quick fixes."""

from __future__ import annotations

import logging
import re

from accessor_nav.core import scanner
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.naming import lcfirst
from accessor_nav.core.paths import split_fqn
from accessor_nav.core.resolver import AccessorResolver, type_hypotheses
from accessor_nav.models import CodeAction, CompletionItem, Position, TextEdit

logger = logging.getLogger(__name__)

_MEMBER_PREFIX_RE = re.compile(r"\??->\s*(\w*)$")
_METHOD_CALL_RE = re.compile(r"\$(\w+)->(\w+)\s*\(")


def _public_methods(text: str, class_name: str | None = None) -> list[str]:
    span = scanner.find_class(text, class_name) if class_name else None
    body = text[span.body_start : span.end + 1] if span else text
    return [
        m.name
        for m in scanner.find_methods(body)
        if m.visibility == "public" and not m.name.startswith("__")
    ]


def _completion_item(fqn: str, method: str, from_proxy: bool) -> CompletionItem:
    origin = " (generated accessor)" if from_proxy else ""
    if method.startswith("get"):
        return CompletionItem(
            label=method,
            detail=f"{fqn}::{method}()",
            documentation=f"Get {lcfirst(method[3:])} from {fqn}{origin}",
        )
    if method.startswith("set"):
        return CompletionItem(
            label=method,
            detail=f"{fqn}::{method}($value)",
            documentation=f"Set {lcfirst(method[3:])} on {fqn}{origin}",
            insert_text=f"{method}(${{1:$value}})",
        )
    return CompletionItem(label=method, detail=f"{fqn}::{method}()", insert_text=f"{method}(${{1}})")


async def completions(
    resolver: AccessorResolver, document: SourceDocument, position: Position
) -> list[CompletionItem]:
    line = document.line_text(position.row)[: position.column]
    match = _MEMBER_PREFIX_RE.search(line)
    if match is None:
        return []
    prefix = match.group(1)
    offset = document.offset_at(Position(row=position.row, column=match.start(1)))

    store = resolver.context.store
    resolved = await resolver.resolve_receiver(document, offset)
    if resolved is None:
        return []
    fqn, path = resolved
    _, class_name = split_fqn(fqn)
    text = await store.read_text(path)
    if text is None:
        return []

    items: dict[str, CompletionItem] = {}
    for method in _public_methods(text, class_name):
        items.setdefault(method, _completion_item(fqn, method, from_proxy=False))

    proxy_path = await resolver.context.proxies.find_proxy(fqn)
    if proxy_path is not None:
        proxy_text = await store.read_text(proxy_path)
        for method in _public_methods(proxy_text or ""):
            items.setdefault(method, _completion_item(fqn, method, from_proxy=True))

    return [item for name, item in items.items() if name.lower().startswith(prefix.lower())]


def method_doc_block(fqn: str, methods: list[str], indentation: str = "") -> str:
    lines = ["/**", f" * @var {fqn}"]
    for method in methods:
        if method.startswith("get"):
            lines.append(f" * @method mixed {method}() Get the {lcfirst(method[3:])} property")
        elif method.startswith("set"):
            lines.append(f" * @method self {method}(mixed $value) Set the {lcfirst(method[3:])} property")
        else:
            lines.append(f" * @method mixed {method}()")
    lines.append(" */")
    return "".join(f"{indentation}{line}\n" for line in lines)


async def quick_fixes(resolver: AccessorResolver, document: SourceDocument, row: int) -> list[CodeAction]:
    """Annotation fixes for a ``$var->method(`` call on ``row`` whose class declares ``method``."""
    line = document.line_text(row)
    match = _METHOD_CALL_RE.search(line)
    if match is None or match.group(1) == "this":
        return []
    variable, method = match.group(1), match.group(2)
    offset = document.offset_at(Position(row=row, column=match.start()))

    inferred = resolver.context.engine.infer_variable(document, variable, offset)
    if not inferred:
        return []
    hypotheses = type_hypotheses(inferred, scanner.find_namespace(document.text))
    resolved = await resolver.context.paths.resolve_first(hypotheses)
    if resolved is None:
        return []
    fqn, path = resolved
    _, class_name = split_fqn(fqn)

    store = resolver.context.store
    class_text = await store.read_text(path) or ""
    methods = _public_methods(class_text, class_name)
    proxy_path = await resolver.context.proxies.find_proxy(fqn)
    if proxy_path is not None:
        methods.extend(m for m in _public_methods(await store.read_text(proxy_path) or "") if m not in methods)
    if method.lower() not in {m.lower() for m in methods}:
        logger.debug("%s does not declare %s; no quick fix", fqn, method)
        return []

    indentation = line[: len(line) - len(line.lstrip())]
    actions = [
        CodeAction(
            title=f"Add inline @method {method} annotation",
            edits=[
                TextEdit(
                    file_path=document.path,
                    position=Position(row=row, column=0),
                    new_text=f"{indentation}// /* @method mixed {method}() declared in {fqn} */\n",
                )
            ],
            is_preferred=True,
        )
    ]

    assignment = re.compile(rf"\${re.escape(variable)}\s*=(?!=)")
    for candidate in range(row, -1, -1):
        definition_line = document.line_text(candidate)
        if assignment.search(definition_line):
            definition_indent = definition_line[: len(definition_line) - len(definition_line.lstrip())]
            actions.append(
                CodeAction(
                    title=f"Generate PHPDoc block for ${variable}",
                    edits=[
                        TextEdit(
                            file_path=document.path,
                            position=Position(row=candidate, column=0),
                            new_text=method_doc_block(fqn, methods, definition_indent),
                        )
                    ],
                )
            )
            break
    return actions
