"""
Homework processing API routes.
"""
import logging
import secrets
import uuid
from functools import lru_cache
from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException

from api.models.requests import HomeworkProcessRequest
from api.models.responses import HomeworkProcessResponse, JobStatusResponse
from core.config import INTERNAL_API_SECRET
from core.pipeline import HomeworkPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

# Simple job storage (in-memory, replace with Redis in production)
jobs: Dict[str, Dict] = {}


@lru_cache(maxsize=1)
def get_pipeline() -> HomeworkPipeline:
    return HomeworkPipeline()


def verify_internal_secret(x_internal_secret: Optional[str] = Header(default=None)):
    """Only internal callers holding the shared secret may start processing."""
    if not INTERNAL_API_SECRET or not secrets.compare_digest(
        x_internal_secret or "", INTERNAL_API_SECRET
    ):
        logger.warning("Unauthorized homework processing request - invalid secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


def run_homework_job(job_id: str, request: HomeworkProcessRequest, pipeline: HomeworkPipeline):
    """Background task body; the outcome is recorded on the job."""
    jobs[job_id]["status"] = "processing"
    try:
        result = pipeline.run(
            homework_id=request.homework_id,
            user_id=request.user_id,
            questions=[q.to_model() for q in request.questions],
            generate_illustrations=request.generate_illustrations,
        )
        jobs[job_id].update(
            status="completed" if result.success else "failed",
            question_count=result.question_count,
            error=result.error,
        )
    except Exception as e:
        logger.error(f"Job {job_id} crashed: {e}")
        jobs[job_id].update(status="failed", error=str(e))


@router.post(
    "/process",
    response_model=HomeworkProcessResponse,
    status_code=202,
    dependencies=[Depends(verify_internal_secret)],
)
async def process_homework(
    request: HomeworkProcessRequest,
    background_tasks: BackgroundTasks,
    pipeline: HomeworkPipeline = Depends(get_pipeline),
):
    """Queue a homework for solving; progress is available under /jobs/{job_id}."""
    job_id = f"job_{uuid.uuid4().hex[:12]}"
    jobs[job_id] = {"homework_id": request.homework_id, "status": "queued"}

    logger.info(f"Queued homework {request.homework_id} as {job_id} ({len(request.questions)} questions)")
    background_tasks.add_task(run_homework_job, job_id, request, pipeline)

    return HomeworkProcessResponse(
        job_id=job_id,
        homework_id=request.homework_id,
        status="queued",
        question_count=len(request.questions),
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str):
    """Fetch the status of a processing job."""
    job = jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobStatusResponse(
        job_id=job_id,
        homework_id=job["homework_id"],
        status=job["status"],
        question_count=job.get("question_count"),
        error=job.get("error"),
    )
