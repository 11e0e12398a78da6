"""Pydantic schemas for API requests and responses."""

from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from shortlinks.lib.database.models import Link, CreateStatus


class CreateLinkRequest(BaseModel):
    """Request to create a short link."""
    
    target_url: str = Field(..., description="The URL to shorten")
    short_code: Optional[str] = Field(
        None,
        description="Optional custom short code (6-8 alphanumeric characters)",
        validation_alias=AliasChoices("short_code", "custom_code"),
    )
    
    @field_validator("target_url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()
    
    @field_validator("short_code")
    @classmethod
    def blank_code_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty form field as 'no custom code'."""
        if v is None or not v.strip():
            return None
        return v.strip()
    
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"target_url": "https://example.com/very/long/path/to/resource"},
                {"target_url": "https://github.com/user/repo", "short_code": "myrepo1"},
            ]
        }
    }


class LinkResponse(BaseModel):
    """A link and its usage counters."""
    
    short_code: str
    target_url: str
    total_clicks: int
    creation_count: int
    last_clicked: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    short_url: Optional[str] = Field(None, description="The complete short URL")
    
    @classmethod
    def from_link(cls, link: Link, short_url: Optional[str] = None) -> "LinkResponse":
        return cls(
            short_code=link.code,
            target_url=link.target_url,
            total_clicks=link.total_clicks,
            creation_count=link.creation_count,
            last_clicked=link.last_clicked,
            created_at=link.created_at,
            updated_at=link.updated_at,
            short_url=short_url,
        )


class CreateLinkResponse(LinkResponse):
    """Response after a create request."""
    
    status: CreateStatus = Field(..., description="'created' for a new link, 'incremented' for a repeat URL")
    
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "short_code": "aB3dE9x",
                    "target_url": "https://example.com/very/long/path",
                    "total_clicks": 0,
                    "creation_count": 1,
                    "last_clicked": None,
                    "created_at": "2024-01-01T12:00:00Z",
                    "updated_at": "2024-01-01T12:00:00Z",
                    "short_url": "https://short.link/aB3dE9x",
                    "status": "created",
                }
            ]
        }
    }


class DeleteResponse(BaseModel):
    """Confirmation of a delete."""
    
    deleted: bool
    short_code: str


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""
    
    error: str = Field(..., description="Error kind")
    detail: Optional[str] = Field(None, description="Detailed error information")


class StatisticsResponse(BaseModel):
    """Statistics response."""
    
    total_links: int
    total_clicks: int
    database: str
    cache_enabled: bool
