from fastapi import APIRouter, Depends

from accessor_nav.api.dependencies import get_context
from accessor_nav.api.schemas import CacheClearResponse, CacheStats, CacheStatsResponse
from accessor_nav.core.resolver import ResolverContext

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("", response_model=CacheStatsResponse)
async def cache_stats(context: ResolverContext = Depends(get_context)) -> CacheStatsResponse:
    stats = context.stats()
    return CacheStatsResponse(
        resolution=CacheStats(**stats["resolution"]),
        class_file=CacheStats(**stats["class_file"]),
    )


@router.delete("", response_model=CacheClearResponse)
async def clear_cache(context: ResolverContext = Depends(get_context)) -> CacheClearResponse:
    context.clear()
    return CacheClearResponse()
