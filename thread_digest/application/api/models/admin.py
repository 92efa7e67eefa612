"""
Admin API Models
"""

from pydantic import BaseModel, Field


class InstallationRequest(BaseModel):
    """Bot token of a workspace that installed the app."""

    bot_token: str = Field(..., min_length=1, description="xoxb- bot token")
