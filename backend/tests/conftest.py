"""
Shared builders for pipeline tests.
"""
import pytest

from models.ai_schemas import AdaptiveSolution, BatchSolutionItem
from models.homework_models import (
    ClassifiedQuestion,
    ExtractedQuestion,
    QuestionCategory,
    QuestionClassification,
    QuestionComplexity,
    VisualizationNeed,
)


def build_question(order_index, text=None, **kwargs):
    return ExtractedQuestion(
        order_index=order_index,
        question_text=text or f"Question {order_index}: solve x + {order_index} = 0",
        **kwargs,
    )


def build_classified(order_index, text=None, complexity=QuestionComplexity.SIMPLE,
                     can_batch=True, category=QuestionCategory.CALCULATION,
                     need=VisualizationNeed.NOT_NEEDED, reason=None, **kwargs):
    return ClassifiedQuestion(
        question=build_question(order_index, text, **kwargs),
        classification=QuestionClassification(
            complexity=complexity,
            estimated_steps=2,
            visualization_need=need,
            visualization_reason=reason,
            question_category=category,
            can_batch_process=can_batch,
        ),
    )


def solution_fields(answer="x = 0", **overrides):
    fields = {
        "detected_subject": "Algebra",
        "detected_topic": "Linear equations",
        "question_type": "calculation",
        "difficulty": "easy",
        "answer": answer,
        "solution_steps": ["Subtract the constant from both sides"],
        "solution_steps_he": ["מחסרים את הקבוע משני האגפים"],
        "tip": "Isolate the variable.",
        "tip_he": "בודדו את המשתנה.",
        "ai_confidence": 9,
    }
    fields.update(overrides)
    return fields


def batch_item(index, answer=None, **overrides):
    return BatchSolutionItem(question_index=index, **solution_fields(answer or f"answer {index}", **overrides))


def adaptive_solution(answer="x = 0", **overrides):
    return AdaptiveSolution(**solution_fields(answer, **overrides))


@pytest.fixture
def make_question():
    return build_question


@pytest.fixture
def make_classified():
    return build_classified


@pytest.fixture
def make_batch_item():
    return batch_item


@pytest.fixture
def make_adaptive_solution():
    return adaptive_solution


@pytest.fixture
def make_solution_fields():
    return solution_fields
