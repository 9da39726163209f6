import os
from pathlib import Path

from pydantic import BaseModel, Field

_DEFAULT_LAYOUT_PREFIXES = ["app", "src", "application", "lib"]
_DEFAULT_EXCLUDED_DIRS = ["vendor", ".git", "node_modules", ".php-accessor"]


class ResolverSettings(BaseModel):
    """Bounds and layout conventions for one workspace session."""

    roots: list[Path] = Field(default_factory=lambda: [Path.cwd()])
    layout_prefixes: list[str] = Field(default_factory=lambda: list(_DEFAULT_LAYOUT_PREFIXES))
    excluded_dirs: list[str] = Field(default_factory=lambda: list(_DEFAULT_EXCLUDED_DIRS))

    proxy_dir: str = ".php-accessor/proxy/accessor"
    meta_dir_name: str = "meta"
    proxy_prefix: str = "_Proxy_"
    proxy_suffix: str = "Accessor"
    source_extension: str = ".php"

    annotation_window: int = 15
    chain_lookback: int = 10
    max_search_depth: int = 8
    max_files_visited: int = 5000
    proxy_scan_limit: int = 500
    max_inheritance_depth: int = 8

    resolution_cache_size: int = 500
    class_file_cache_size: int = 100

    timeout_seconds: float = 5.0
    proxy_scan_fallback: bool = True

    def proxy_roots(self) -> list[Path]:
        return [root / self.proxy_dir for root in self.roots]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(roots: list[str] | list[Path] | None = None) -> ResolverSettings:
    """Build settings from explicit roots or ``ACCESSOR_NAV_*`` environment variables.

    Roots are made absolute so cached paths match the paths a watcher reports.
    """
    if roots:
        resolved_roots = [Path(r).resolve() for r in roots]
    else:
        env_roots = os.getenv("ACCESSOR_NAV_ROOTS", "")
        resolved_roots = [Path(r).resolve() for r in env_roots.split(os.pathsep) if r] or [Path.cwd().resolve()]

    settings = ResolverSettings(roots=resolved_roots)

    prefixes = os.getenv("ACCESSOR_NAV_LAYOUT_PREFIXES")
    if prefixes:
        settings.layout_prefixes = [p.strip() for p in prefixes.split(",") if p.strip()]

    proxy_dir = os.getenv("ACCESSOR_NAV_PROXY_DIR")
    if proxy_dir:
        settings.proxy_dir = proxy_dir

    settings.timeout_seconds = _env_float("ACCESSOR_NAV_TIMEOUT", settings.timeout_seconds)
    settings.resolution_cache_size = _env_int("ACCESSOR_NAV_CACHE_SIZE", settings.resolution_cache_size)
    return settings
