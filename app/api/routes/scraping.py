from fastapi import APIRouter, Depends

from app.core.auth import verify_api_key
from app.core.config import settings
from app.schemas.scraping import ImageInfo, ImageInfoRequest, ImageInfoResponse
from app.services.page_scraper import extract_image_info
from app.utils.image_proxy import proxy_image_url

router = APIRouter(tags=["Scraping"])


@router.post(
    "/scrape/image-info",
    response_model=ImageInfoResponse,
    dependencies=[Depends(verify_api_key)],
)
def image_info(body: ImageInfoRequest) -> ImageInfoResponse:
    """Describe a competitor image using the page snapshot around it."""
    info = extract_image_info(body.html, body.image_url, body.page_url)
    return ImageInfoResponse(
        **(info or ImageInfo()).model_dump(),
        found=info is not None,
        proxy_url=proxy_image_url(body.image_url, settings.app.public_base_url),
    )
