"""Pydantic models for API request/response."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_URL_LENGTH = 2048


class ResourceUrlRequest(BaseModel):
    """A resource URL submitted for preview or checking."""

    url: str = Field(min_length=1, max_length=MAX_URL_LENGTH)

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be blank")
        return v


class ResourceMetadata(BaseModel):
    """Preview data for one learning resource, serialized in camelCase for the client."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["video", "interactive", "docs", "article"]
    title: str
    description: str = ""
    hostname: str
    preview_html: str = Field(default="", serialization_alias="previewHtml")
    can_embed: bool = Field(default=False, serialization_alias="canEmbed")
    url: str
    embed_url: str | None = Field(default=None, serialization_alias="embedUrl")


class UrlCheckResponse(BaseModel):
    """Outcome of a URL check; never includes the rejection reason."""

    allowed: bool
