"""Validation utilities for link input."""

from urllib.parse import urlparse
from typing import Tuple

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from ..shortcode import CodeAllocator


# Parses with the same WHATWG rules browsers use; the raw string is what gets stored
_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _has_control_characters(value: str) -> bool:
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in value)


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a target URL.
    
    The URL must be absolute, use http or https, and name a host that
    parses. Control characters are rejected outright since the parser
    would silently escape or drop them.
    
    Args:
        url: The URL to validate
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"
    
    if _has_control_characters(url):
        return False, "URL must not contain control characters"
    
    try:
        result = urlparse(url)
        
        if result.scheme not in ("http", "https"):
            return False, "URL must use http or https protocol"
        
        if not result.hostname:
            return False, "URL must have a valid domain"
        
        # Raises ValueError for a malformed port
        result.port
        
        _HTTP_URL.validate_python(url)
        
        return True, ""
        
    except ValidationError as e:
        return False, f"Invalid URL format: {e.errors()[0]['msg']}"
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"


def is_valid_short_code(short_code: str) -> Tuple[bool, str]:
    """Validate a caller-supplied short code.
    
    Args:
        short_code: The short code to validate
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"
    
    if not CodeAllocator.is_well_formed(short_code):
        return False, "Short code must be 6-8 alphanumeric characters (A-Z, a-z, 0-9)"
    
    return True, ""
