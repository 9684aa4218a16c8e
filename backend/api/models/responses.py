"""
Pydantic response models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class HomeworkProcessResponse(BaseModel):
    """Response model for homework processing."""
    job_id: str = Field(..., description="Job ID for tracking")
    homework_id: str
    status: str = Field(..., description="Job status")
    question_count: int = Field(..., description="Number of submitted questions")


class JobStatusResponse(BaseModel):
    """Response model for job status."""
    job_id: str
    homework_id: str
    status: str
    question_count: Optional[int] = None
    error: Optional[str] = None


class GraphSampleResponse(BaseModel):
    """Sampled points; y is null where the function is undefined."""
    expression: str
    x: List[float]
    y: List[Optional[float]]


class IllustrationDeleteResponse(BaseModel):
    file_id: str
    deleted: bool
