from fastapi import APIRouter

from app.schemas.prompts import PromptExtractionRequest, PromptExtractionResponse
from app.services.prompt_extractor import extract_prompts

router = APIRouter(tags=["Prompts"])


@router.post("/prompts/extract", response_model=PromptExtractionResponse)
def extract(body: PromptExtractionRequest) -> PromptExtractionResponse:
    """Find the image prompts inside an assistant reply."""
    prompts = extract_prompts(body.content)
    return PromptExtractionResponse(prompts=prompts, count=len(prompts))
