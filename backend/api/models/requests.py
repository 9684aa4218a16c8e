"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from models.homework_models import ExtractedQuestion


class ExtractedQuestionIn(BaseModel):
    """One question as produced by document extraction."""
    order_index: int = Field(..., ge=0, description="Position of the question in the homework")
    question_text: str = Field(..., min_length=1, description="Question text")
    is_sub_question: bool = Field(default=False)
    parent_context: Optional[str] = Field(default=None, description="Shared context of the parent question")
    sub_question_label: Optional[str] = Field(default=None, description="Label such as 'a' or '1'")
    page_number: int = Field(default=1, ge=1)
    original_language: str = Field(default="en", pattern="^(en|he)$")

    def to_model(self) -> ExtractedQuestion:
        return ExtractedQuestion(
            order_index=self.order_index,
            question_text=self.question_text,
            is_sub_question=self.is_sub_question,
            parent_context=self.parent_context,
            sub_question_label=self.sub_question_label,
            page_number=self.page_number,
            original_language=self.original_language,
        )


class HomeworkProcessRequest(BaseModel):
    """Request model for homework processing."""
    homework_id: str = Field(..., min_length=1, description="Homework ID")
    user_id: str = Field(..., min_length=1, description="Owner of the homework")
    questions: List[ExtractedQuestionIn] = Field(..., description="Extracted questions")
    generate_illustrations: bool = Field(default=False, description="Generate AI illustrations")

    @field_validator("questions")
    @classmethod
    def order_indices_unique(cls, questions: List[ExtractedQuestionIn]) -> List[ExtractedQuestionIn]:
        seen = set()
        for question in questions:
            if question.order_index in seen:
                raise ValueError(f"Duplicate order_index {question.order_index}")
            seen.add(question.order_index)
        return questions


class GraphSampleRequest(BaseModel):
    """Request model for sampling a graphable function."""
    expression: str = Field(..., min_length=1, max_length=500, description="Function of x")
    domain_min: float = Field(default=-5.0)
    domain_max: float = Field(default=5.0)
    num_points: int = Field(default=200, ge=2, le=2000)
