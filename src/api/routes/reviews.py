"""Worker review API routes."""

from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from src.schemas.review import (
    ReviewCreate,
    ReviewCreatedResponse,
    ReviewListResponse,
    ReviewResponse,
)
from src.services.image_storage import ImageRejectedError
from src.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post(
    "",
    response_model=ReviewCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review",
    description="Multipart form with review fields and up to 5 images (jpeg, png, gif; 5 MB each).",
)
async def create_review(
    worker_name: Annotated[str, Form(min_length=1)],
    name: Annotated[str, Form(min_length=1)],
    email: Annotated[str, Form(min_length=3)],
    written_review: Annotated[str, Form(min_length=1)],
    overall_satisfaction: Annotated[int, Form(ge=1, le=5)] = 5,
    quality_of_work: Annotated[int, Form(ge=1, le=5)] = 5,
    timeliness: Annotated[int, Form(ge=1, le=5)] = 5,
    accuracy: Annotated[int, Form(ge=1, le=5)] = 5,
    communication_skills: Annotated[int, Form(ge=1, le=5)] = 5,
    product_name: Annotated[str, Form()] = "N/A",
    consent_to_publish: Annotated[bool, Form()] = True,
    is_anonymous: Annotated[bool, Form()] = False,
    images: Annotated[list[UploadFile] | None, File(alias="reviewImages")] = None,
) -> ReviewCreatedResponse:
    """Store a review with its photos.

    Raises:
        HTTPException: 400 if an image is rejected.
    """
    data = ReviewCreate(
        worker_name=worker_name,
        name=name,
        email=email,
        written_review=written_review,
        overall_satisfaction=overall_satisfaction,
        quality_of_work=quality_of_work,
        timeliness=timeliness,
        accuracy=accuracy,
        communication_skills=communication_skills,
        product_name=product_name,
        consent_to_publish=consent_to_publish,
        is_anonymous=is_anonymous,
    )

    service = ReviewService()
    try:
        review = await service.create_review(data, images)
    except ImageRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return ReviewCreatedResponse(review=ReviewResponse(**review))


@router.get(
    "",
    response_model=ReviewListResponse,
    summary="List all reviews",
)
async def list_reviews() -> ReviewListResponse:
    service = ReviewService()
    reviews = await service.list_reviews()
    return ReviewListResponse(reviews=[ReviewResponse(**review) for review in reviews])


@router.get(
    "/published",
    response_model=ReviewListResponse,
    summary="List published reviews",
    description="Reviews whose authors consented to publication and did not post anonymously.",
)
async def list_published_reviews() -> ReviewListResponse:
    service = ReviewService()
    reviews = await service.list_published_reviews()
    return ReviewListResponse(reviews=[ReviewResponse(**review) for review in reviews])
