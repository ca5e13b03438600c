# =============================================================================
# core/models/generation.py - Generation History Schemas
# =============================================================================
# A generation is one analyzed image plus the metadata produced for each
# selected marketplace. Rows live in `generations` and
# `generation_marketplaces` and are purged by the cleanup job after the
# retention window.
# =============================================================================

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MarketplaceMetadata(BaseModel):
    """Title/description/keywords generated for one marketplace."""
    marketplace: str
    title: str
    description: str = ""
    keywords: list[str] = Field(default_factory=list)


class GenerationResponse(BaseModel):
    """A generation with its marketplace rows, as shown in the history."""
    id: str
    image_url: Optional[str] = None
    file_name: Optional[str] = None
    display_name: Optional[str] = None
    batch_id: Optional[str] = None
    created_at: Optional[datetime] = None
    marketplaces: list[MarketplaceMetadata] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "GenerationResponse":
        """Build from a generations row with embedded generation_marketplaces."""
        marketplaces = [
            MarketplaceMetadata(
                marketplace=mp.get("marketplace_name", ""),
                title=mp.get("title") or "",
                description=mp.get("description") or "",
                keywords=mp.get("keywords") or [],
            )
            for mp in row.get("generation_marketplaces") or []
        ]
        return cls(
            id=row["id"],
            image_url=row.get("image_url"),
            file_name=row.get("file_name"),
            display_name=row.get("display_name"),
            batch_id=row.get("batch_id"),
            created_at=row.get("created_at"),
            marketplaces=marketplaces,
        )


class GenerationList(BaseModel):
    generations: list[GenerationResponse]
    count: int
