"""
Illustration management API routes.
"""
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from api.models.responses import IllustrationDeleteResponse
from api.routes.homework import verify_internal_secret
from services.illustration.illustration_generator import IllustrationGenerator

router = APIRouter()


@lru_cache(maxsize=1)
def get_illustration_generator() -> IllustrationGenerator:
    return IllustrationGenerator()


@router.delete(
    "/{file_id}",
    response_model=IllustrationDeleteResponse,
    dependencies=[Depends(verify_internal_secret)],
)
async def delete_illustration(
    file_id: str,
    generator: IllustrationGenerator = Depends(get_illustration_generator),
):
    """Delete a stored illustration."""
    if not generator.delete_illustration(file_id):
        raise HTTPException(status_code=502, detail=f"Failed to delete illustration {file_id}")
    return IllustrationDeleteResponse(file_id=file_id, deleted=True)
