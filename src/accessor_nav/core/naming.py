import re

from accessor_nav.models import NamingConvention

ACCESSOR_PREFIXES = ("get", "set")

_ACCESSOR_RE = re.compile(r"^(?:get|set)[A-Z]\w*$")
_UPPER_RE = re.compile(r"(?<!^)(?=[A-Z])")


def is_accessor_name(name: str) -> bool:
    return bool(_ACCESSOR_RE.match(name))


def lcfirst(value: str) -> str:
    return value[:1].lower() + value[1:]


def ucfirst(value: str) -> str:
    return value[:1].upper() + value[1:]


def camel_to_snake(value: str) -> str:
    """``FooBar`` -> ``foo_bar``; an underscore goes before every non-leading uppercase letter."""
    return _UPPER_RE.sub("_", value).lower()


def _dedupe(names: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def candidate_names(method_name: str, convention: NamingConvention) -> list[str]:
    """Property names an accessor may stand for, highest confidence first.

    Order: convention-derived name, raw lower-camel name, snake_case name.
    """
    base = method_name[3:]
    if not base:
        return []

    if convention is NamingConvention.UPPER_CAMEL:
        primary = ucfirst(base)
    else:
        # NONE carries no information about the property's case; treat it like LOWER_CAMEL
        primary = lcfirst(base)

    return _dedupe([primary, lcfirst(base), camel_to_snake(base)])


def build_candidates(
    method_name: str,
    convention: NamingConvention,
    mapped_field: str | None = None,
) -> list[str]:
    """Full ordered candidate list: sidecar mapping, then :func:`candidate_names`."""
    names = [mapped_field] if mapped_field else []
    names.extend(candidate_names(method_name, convention))
    return _dedupe(names)


def accessor_names(property_name: str) -> tuple[str, str]:
    """Getter and setter names generated for ``property_name`` (``$`` prefix tolerated)."""
    name = property_name.lstrip("$")
    if "_" in name:
        name = "".join(ucfirst(part) for part in name.split("_") if part)
    fragment = ucfirst(name)
    return f"get{fragment}", f"set{fragment}"
