"""API routes implementation."""

from typing import List

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone

from .schemas import (
    CreateLinkRequest,
    CreateLinkResponse,
    LinkResponse,
    DeleteResponse,
    HealthResponse,
    ErrorResponse,
    StatisticsResponse,
)
from shortlinks.lib.common.url_builder import build_short_url
from shortlinks.lib.common.headers import build_base_url, resolve_path_prefix

router = APIRouter()


def _short_url(request: Request, short_code: str) -> str:
    """Public short URL for a code, honouring proxy headers."""
    config = request.app.state.config
    base_url = build_base_url(
        headers=request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return build_short_url(
        short_code=short_code,
        base_url=base_url,
        path_prefix=resolve_path_prefix(request.headers, config.path_prefix),
    )


@router.post(
    "/links",
    response_model=CreateLinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": CreateLinkResponse, "description": "Existing link for this URL; creation_count incremented"},
        400: {"model": ErrorResponse, "description": "Invalid URL or short code"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        503: {"model": ErrorResponse, "description": "No free short code could be allocated"},
    },
    summary="Create short link",
    description="Create a short link. Optionally provide a custom 6-8 character code.",
)
async def create_link(request: Request, response: Response, body: CreateLinkRequest):
    """Create a short link, or bump creation_count for a repeat URL."""
    service = request.app.state.service
    
    result = await service.create_link(
        target_url=body.target_url,
        custom_code=body.short_code,
    )
    
    if not result.created:
        response.status_code = status.HTTP_200_OK
    
    link_body = LinkResponse.from_link(result.link, _short_url(request, result.link.code))
    return CreateLinkResponse(**link_body.model_dump(), status=result.status)


@router.get(
    "/links",
    response_model=List[LinkResponse],
    summary="List links",
    description="All links, most recently created first.",
)
async def list_links(request: Request):
    service = request.app.state.service
    
    links = await service.list_links()
    
    return [LinkResponse.from_link(link, _short_url(request, link.code)) for link in links]


@router.get(
    "/links/{short_code}",
    response_model=LinkResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get link",
    description="Get a link and its click statistics. Does not count as a click.",
)
async def get_link(request: Request, short_code: str):
    service = request.app.state.service
    
    link = await service.get_link(short_code)
    
    return LinkResponse.from_link(link, _short_url(request, link.code))


@router.delete(
    "/links/{short_code}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Delete link",
    description="Delete a link. Its code becomes available again.",
)
async def delete_link(request: Request, short_code: str):
    service = request.app.state.service
    
    await service.delete_link(short_code)
    
    return DeleteResponse(deleted=True, short_code=short_code)


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get service-wide totals.",
)
async def get_statistics(request: Request):
    service = request.app.state.service
    
    stats = await service.get_statistics()
    
    return StatisticsResponse(**stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        503: {"model": HealthResponse, "description": "Service unhealthy"},
    },
    summary="Health check",
    description="Check if the store and cache are reachable.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service
    
    health = await service.health_check()
    
    body = HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        content=body.model_dump(mode="json"),
        status_code=status.HTTP_200_OK if health["overall"] else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
