"""Worker review business logic service."""

import logging

from fastapi import UploadFile

from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.review import Review
from src.schemas.review import ReviewCreate
from src.services.image_storage import ImageRejectedError, ImageStore

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for submitting and listing worker reviews."""

    def __init__(self) -> None:
        """Initialize review service with clients."""
        self.client = get_supabase_client()
        self.settings = get_settings()
        self.images = ImageStore(
            self.client,
            bucket=self.settings.review_images_bucket,
            max_bytes=self.settings.review_max_image_bytes,
            prefix="review",
        )

    async def create_review(
        self,
        data: ReviewCreate,
        images: list[UploadFile] | None = None,
    ) -> Review:
        """Store a review and its photos.

        All images are validated before any is uploaded. If an upload or the
        insert fails, the photos already stored for this review are removed.

        Args:
            data: Review form fields.
            images: Optional attached photos.

        Returns:
            dict: The stored review row.

        Raises:
            ImageRejectedError: If too many images are attached or one is invalid.
        """
        images = [image for image in images or [] if image.filename]
        if len(images) > self.settings.review_max_images:
            raise ImageRejectedError(f"At most {self.settings.review_max_images} images can be attached")

        contents = [await self.images.validate(image) for image in images]
        paths = self.images.upload_all(contents, images)

        review_data = data.model_dump()
        review_data["images"] = [self.images.public_url(path) for path in paths]

        try:
            response = self.client.table("reviews").insert(review_data).execute()
        except Exception:
            self.images.remove(paths)
            raise
        review = response.data[0]
        logger.info("Review %s saved for %s with %d images", review["id"], data.worker_name, len(paths))
        return review

    async def list_reviews(self) -> list[Review]:
        """All reviews, newest first."""
        response = (
            self.client.table("reviews")
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    async def list_published_reviews(self) -> list[Review]:
        """Reviews the author agreed to publish under their name, newest first."""
        response = (
            self.client.table("reviews")
            .select("*")
            .eq("consent_to_publish", True)
            .eq("is_anonymous", False)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []
