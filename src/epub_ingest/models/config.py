"""Ingestion configuration."""

import hashlib

from pydantic import BaseModel, Field


class IngestConfig(BaseModel):
    """Knobs for the ingestion pipeline.

    Passed explicitly into every stage that needs it; nothing here is read
    from the environment.
    """

    strip_text_align: bool = False
    downgrade_all_headings: bool = False
    include_nested_nav_points: bool = False
    strict_toc_order: bool = False
    max_resources: int = Field(default=5000, ge=1)
    asset_url_prefix: str = "/novels"

    def fingerprint(self) -> str:
        """Digest of the settings that shape an ingested Book.

        ``asset_url_prefix`` only matters when rendering, so it is left out.
        """
        dumped = self.model_dump_json(exclude={"asset_url_prefix"})
        return hashlib.sha256(dumped.encode("utf-8")).hexdigest()[:16]
