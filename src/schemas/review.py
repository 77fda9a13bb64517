"""Review Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    """Form fields of a review submission (images travel separately)."""

    worker_name: str = Field(min_length=1, description="Worker being reviewed")
    name: str = Field(min_length=1, description="Reviewer name")
    email: str = Field(min_length=3, description="Reviewer email")
    written_review: str = Field(min_length=1, description="Review text")
    overall_satisfaction: int = Field(default=5, ge=1, le=5)
    quality_of_work: int = Field(default=5, ge=1, le=5)
    timeliness: int = Field(default=5, ge=1, le=5)
    accuracy: int = Field(default=5, ge=1, le=5)
    communication_skills: int = Field(default=5, ge=1, le=5)
    product_name: str = Field(default="N/A")
    consent_to_publish: bool = Field(default=True)
    is_anonymous: bool = Field(default=False)


class ReviewResponse(ReviewCreate):
    """A stored review."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    images: list[str] = Field(default_factory=list, description="Public image URLs")
    created_at: datetime | None = None


class ReviewCreatedResponse(BaseModel):
    """Response for POST /api/reviews."""

    success: bool = True
    message: str = "Review submitted successfully"
    review: ReviewResponse


class ReviewListResponse(BaseModel):
    """Response for review listings, newest first."""

    success: bool = True
    reviews: list[ReviewResponse]
