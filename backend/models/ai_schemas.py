"""
Pydantic schemas for structured AI responses.

Each schema is sent to the gateway as the response JSON schema and used to
validate what comes back. Length limits that the prompts ask for (step counts,
tip length) are described but not enforced here; they are repaired after
decoding so one verbose answer does not fail a whole batch.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.homework_models import (
    GraphType,
    HomeworkDifficulty,
    HomeworkQuestionType,
    QuestionCategory,
    QuestionComplexity,
    VisualizationNeed,
)


class GatewaySchema(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(populate_by_name=True)


class QuestionClassificationItem(GatewaySchema):
    question_index: int = Field(..., alias="questionIndex", description="Index of question in input array")
    complexity: QuestionComplexity
    estimated_steps: int = Field(
        ..., alias="estimatedSteps", ge=0, description="Expected solution steps (0 for definitions)"
    )
    visualization_need: VisualizationNeed = Field(..., alias="visualizationNeed")
    visualization_reason: Optional[str] = Field(
        default=None, alias="visualizationReason", description="Brief reason if visualization needed"
    )
    question_category: QuestionCategory = Field(..., alias="questionCategory")
    can_batch_process: bool = Field(
        ..., alias="canBatchProcess", description="Can this question be batch processed with others?"
    )


class ClassificationResponse(GatewaySchema):
    classifications: List[QuestionClassificationItem] = Field(default_factory=list)


class SolutionFields(GatewaySchema):
    """Fields shared by every solution shape."""
    detected_subject: str = Field(..., alias="detectedSubject")
    detected_topic: Optional[str] = Field(default=None, alias="detectedTopic")
    question_type: HomeworkQuestionType = Field(..., alias="questionType")
    difficulty: HomeworkDifficulty
    answer: str = Field(..., description="The final answer to the question - MUST NOT be empty")
    solution_steps: List[str] = Field(..., alias="solutionSteps")
    solution_steps_he: List[str] = Field(
        ..., alias="solutionStepsHe", description="Same number of steps as solutionSteps, in Hebrew"
    )
    tip: str = Field(..., description="One sentence, at most 150 characters")
    tip_he: str = Field(..., alias="tipHe", description="Hebrew tip, at most 150 characters")
    ai_confidence: float = Field(..., alias="aiConfidence", description="Confidence score from 0 to 10")


class BatchSolutionItem(SolutionFields):
    question_index: int = Field(..., alias="questionIndex", description="Index from input")


class BatchSolutionResponse(GatewaySchema):
    solutions: List[BatchSolutionItem] = Field(default_factory=list)


class AdaptiveSolution(SolutionFields):
    """Solution for a single simple or medium question."""


class ComplexSolution(SolutionFields):
    """Solution for a complex question, with extra teaching fields."""
    key_insight: str = Field(..., alias="keyInsight", description="Key conceptual insight or main takeaway")
    key_insight_he: str = Field(..., alias="keyInsightHe", description="Key insight in Hebrew")
    common_mistakes: List[str] = Field(
        default_factory=list, alias="commonMistakes", description="Up to 3 common errors students make"
    )
    common_mistakes_he: List[str] = Field(
        default_factory=list, alias="commonMistakesHe", description="Common errors in Hebrew"
    )


class GraphClassificationResponse(GatewaySchema):
    graphable: bool = Field(..., description="Is there a function that can be graphed?")
    graphable_function: Optional[str] = Field(
        default=None,
        alias="graphableFunction",
        description="The function of x, e.g. 'x**2 + 2*x' or 'sin(x)/x'",
    )
    graph_type: Optional[GraphType] = Field(default=None, alias="graphType")
    graph_domain_min: Optional[float] = Field(default=None, alias="graphDomainMin")
    graph_domain_max: Optional[float] = Field(default=None, alias="graphDomainMax")
    confidence: float = Field(..., ge=0, le=1, description="Confidence in the detection (0-1)")
