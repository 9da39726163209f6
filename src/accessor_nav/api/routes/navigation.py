from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from accessor_nav.api.dependencies import get_resolver
from accessor_nav.api.schemas import (
    CompletionsResponse,
    DefinitionResponse,
    DocumentRequest,
    QuickFixResponse,
    ReferencesResponse,
)
from accessor_nav.core.completion import completions as _completions
from accessor_nav.core.completion import quick_fixes as _quick_fixes
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.references import find_references
from accessor_nav.core.resolver import AccessorResolver
from accessor_nav.models import Position

router = APIRouter(tags=["navigation"])


async def _document(body: DocumentRequest, resolver: AccessorResolver) -> SourceDocument:
    text = body.text
    if text is None:
        text = await resolver.context.store.read_text(body.file_path)
    if text is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {body.file_path}")
    return SourceDocument(body.file_path, text)


@router.post("/definition", response_model=DefinitionResponse)
async def definition(
    body: DocumentRequest,
    resolver: AccessorResolver = Depends(get_resolver),
) -> DefinitionResponse:
    """Declaration of the accessor or property at the given position (``null`` when none)."""
    document = await _document(body, resolver)
    location = await resolver.find_definition(document, Position(row=body.row, column=body.column))
    return DefinitionResponse(location=location)


@router.post("/references", response_model=ReferencesResponse)
async def references(
    body: DocumentRequest,
    resolver: AccessorResolver = Depends(get_resolver),
) -> ReferencesResponse:
    document = await _document(body, resolver)
    locations = await find_references(resolver, document, Position(row=body.row, column=body.column))
    return ReferencesResponse(locations=locations)


@router.post("/completions", response_model=CompletionsResponse)
async def completions(
    body: DocumentRequest,
    resolver: AccessorResolver = Depends(get_resolver),
) -> CompletionsResponse:
    document = await _document(body, resolver)
    items = await _completions(resolver, document, Position(row=body.row, column=body.column))
    return CompletionsResponse(items=items)


@router.post("/quick-fixes", response_model=QuickFixResponse)
async def quick_fixes(
    body: DocumentRequest,
    resolver: AccessorResolver = Depends(get_resolver),
) -> QuickFixResponse:
    document = await _document(body, resolver)
    return QuickFixResponse(actions=await _quick_fixes(resolver, document, body.row))
