"""Data models for scraped listings and scrape runs."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field


class Listing(BaseModel):
    """One listing scraped from a search result page."""

    id: int = Field(..., description="Site identifier (listId)")
    url: str = Field(default="", description="Canonical listing link")
    title: str = Field(default="")
    search_term: str = Field(default="", description="q parameter of the originating search")
    # float only to carry NaN from malformed input; valid listings hold an int
    price: Union[int, float] = Field(default=0)
    notify: bool = Field(default=False, description="Whether this run may notify")
    user_id: Optional[int] = None
    chat_id: Optional[Union[int, str]] = None
    valid: bool = Field(default=False, description="Set by validate_listing")


class ListingRecord(BaseModel):
    """Listing as persisted in the ads table."""

    id: int
    search_term: str = ""
    title: str = ""
    price: int
    url: str
    created: datetime
    last_update: datetime
    user_id: Optional[int] = None


class RunSummary(BaseModel):
    """Statistics of one completed pagination run over a search URL."""

    url: str
    ads_found: int
    average_price: float
    min_price: int
    max_price: int
    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SearchTarget(BaseModel):
    """A search URL to scrape, optionally owned by a subscriber."""

    url: str
    user_id: Optional[int] = None
    chat_id: Optional[Union[int, str]] = None
    label: Optional[str] = None


class ProcessOutcome(str, Enum):
    """Terminal state of processing one listing."""

    INVALID = "invalid"
    CREATED = "created"
    UPDATED_NOTIFIED = "updated_notified"
    UPDATED_SILENT = "updated_silent"
    UNCHANGED = "unchanged"
    FAILED = "failed"
