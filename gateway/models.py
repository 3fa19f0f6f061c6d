"""
Pydantic models for the dashboard-facing API.
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class StartFlowResponse(BaseModel):
    """Provider redirect target for a new login"""
    url: str


class AuthStatusResponse(BaseModel):
    """Connection status polled by the dashboard"""
    connected: bool
    method: Optional[str] = None  # "oauth", "api_key" or None


class OkResponse(BaseModel):
    ok: bool = True


class ApiKeyRequest(BaseModel):
    """Static API key submitted instead of an OAuth login"""
    api_key: str = Field(alias="apiKey")


class SettingsUpdateResponse(BaseModel):
    ok: bool = True
    settings: Dict[str, Any]
