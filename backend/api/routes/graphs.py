"""
Graph sampling API routes.
"""
import math

from fastapi import APIRouter, HTTPException

from api.models.requests import GraphSampleRequest
from api.models.responses import GraphSampleResponse
from services.graphing.expression_parser import ExpressionError, sample_function, validate_function

router = APIRouter()


@router.post("/sample", response_model=GraphSampleResponse)
async def sample_graph(request: GraphSampleRequest):
    """Validate an expression and sample it across the domain for plotting."""
    if not validate_function(request.expression):
        raise HTTPException(status_code=422, detail=f"Invalid expression: {request.expression}")
    if request.domain_min >= request.domain_max:
        raise HTTPException(status_code=422, detail="domain_min must be less than domain_max")

    try:
        xs, ys = sample_function(
            request.expression,
            (request.domain_min, request.domain_max),
            request.num_points,
        )
    except (ExpressionError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return GraphSampleResponse(
        expression=request.expression,
        x=[float(x) for x in xs],
        # NaN is not valid JSON
        y=[None if math.isnan(y) else float(y) for y in ys],
    )
