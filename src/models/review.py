"""Review model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict


class Review(TypedDict):
    """reviews table row representation.

    Ratings are integers from 1 to 5. ``images`` holds public storage URLs.
    """

    id: str
    worker_name: str
    name: str
    email: str
    written_review: str
    overall_satisfaction: int
    quality_of_work: int
    timeliness: int
    accuracy: int
    communication_skills: int
    product_name: str
    consent_to_publish: bool
    is_anonymous: bool
    images: list[str]
    created_at: datetime
