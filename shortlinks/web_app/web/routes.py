"""Redirect route."""

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

router = APIRouter()


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_target(request: Request, short_code: str):
    """Count the click and redirect to the target URL.
    
    Unknown codes raise LinkNotFoundError, which the app turns into a 404.
    """
    service = request.app.state.service
    
    link = await service.record_click(short_code)
    
    # 302 so every traversal reaches us and is counted
    return RedirectResponse(url=link.target_url, status_code=status.HTTP_302_FOUND)
