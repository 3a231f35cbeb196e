"""
Common schema types used across the API.
"""
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response raised by the application."""
    detail: str


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid argument"},
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Caller may not act on this organization"},
    404: {"model": ErrorResponse, "description": "Organization or resource not found"},
}
