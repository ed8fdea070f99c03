from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Field values are parsed by the handlers so bad input maps to the documented
# 400 bodies instead of a validation error.


class ContestWindowBody(BaseModel):
    """Either bound may be omitted or null to clear the window."""

    start: Any = None
    end: Any = None

    model_config = ConfigDict(extra="ignore")


class CountdownBody(BaseModel):
    end: Any = None

    model_config = ConfigDict(extra="ignore")


class AnnouncementBody(BaseModel):
    announcement: str | None = ""

    model_config = ConfigDict(extra="ignore")


class PrizesBody(BaseModel):
    prizes: Any = None

    model_config = ConfigDict(extra="ignore")


class HeroBody(BaseModel):
    """Omitted fields keep their current value."""

    headline: str | None = None
    sub1: str | None = None
    sub2: str | None = None
    link_text: str | None = Field(default=None, alias="linkText")
    link_url: str | None = Field(default=None, alias="linkUrl")
    headline_color: str | None = Field(default=None, alias="headlineColor")
    sub1_color: str | None = Field(default=None, alias="sub1Color")
    sub2_color: str | None = Field(default=None, alias="sub2Color")
    headline_glow: str | None = Field(default=None, alias="headlineGlow")
    image_url: str | None = Field(default=None, alias="imageUrl")
    image_glow: str | None = Field(default=None, alias="imageGlow")
    coin_image_url: str | None = Field(default=None, alias="coinImageUrl")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
