from __future__ import annotations

from pydantic import BaseModel, Field

from accessor_nav.models import CodeAction, CompletionItem, ResolvedLocation


class HealthResponse(BaseModel):
    status: str = "ok"


class DocumentRequest(BaseModel):
    """A position in a PHP document.

    ``text`` carries unsaved editor content; without it the file is read from disk.
    """

    file_path: str
    text: str | None = None
    row: int = Field(ge=0)
    column: int = Field(default=0, ge=0)


class DefinitionResponse(BaseModel):
    location: ResolvedLocation | None = None


class ReferencesResponse(BaseModel):
    locations: list[ResolvedLocation]


class CompletionsResponse(BaseModel):
    items: list[CompletionItem]


class QuickFixResponse(BaseModel):
    actions: list[CodeAction]


class CacheStats(BaseModel):
    size: int
    capacity: int
    hits: int
    misses: int


class CacheStatsResponse(BaseModel):
    resolution: CacheStats
    class_file: CacheStats


class CacheClearResponse(BaseModel):
    cleared: bool = True
