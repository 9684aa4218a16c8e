"""
Decoding of solver responses into SolvedQuestion records, post-hoc repair of
the bilingual contract, and placeholders for questions that could not be solved.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from models.ai_schemas import ComplexSolution, SolutionFields
from models.homework_models import (
    ClassifiedQuestion,
    HomeworkDifficulty,
    HomeworkQuestionType,
    SolvedQuestion,
)

logger = logging.getLogger(__name__)

MAX_TIP_CHARS = 150
MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 10.0


@dataclass(frozen=True)
class PlaceholderText:
    """Failure wording shown in place of a solution."""
    answer: str
    step: str
    step_he: str
    tip: str
    tip_he: str


# Response left out a question of an otherwise successful batch
MISSING_SOLUTION = PlaceholderText(
    answer="Error: Solution not generated",
    step="Error processing question",
    step_he="שגיאה בעיבוד השאלה",
    tip="Please try again",
    tip_he="נסה שוב",
)

# Whole batch call failed
BATCH_FAILED = PlaceholderText(
    answer="Error: Batch processing failed",
    step="This question could not be processed in batch mode",
    step_he="לא ניתן היה לעבד שאלה זו במצב אצווה",
    tip="Please retry this homework",
    tip_he="נסה שוב את השיעורי בית",
)

# Single-question solve failed
SOLVE_FAILED = PlaceholderText(
    answer="Error: Solution could not be generated",
    step="This question could not be solved automatically",
    step_he="לא ניתן היה לפתור שאלה זו באופן אוטומטי",
    tip="Please retry this question",
    tip_he="נסה שוב את השאלה",
)


def placeholder_solution(question: ClassifiedQuestion, text: PlaceholderText) -> SolvedQuestion:
    """Failure record that keeps the original question and classification."""
    return SolvedQuestion(
        question=question,
        question_type=HomeworkQuestionType.CALCULATION,
        detected_subject="Unknown",
        difficulty=HomeworkDifficulty.EASY,
        answer=text.answer,
        solution_steps=[text.step],
        solution_steps_he=[text.step_he],
        tip=text.tip,
        tip_he=text.tip_he,
        ai_confidence=0,
    )


def to_solved_question(question: ClassifiedQuestion, solution: SolutionFields) -> SolvedQuestion:
    """Build a repaired SolvedQuestion from a decoded solver response."""
    solved = SolvedQuestion(
        question=question,
        question_type=solution.question_type,
        detected_subject=solution.detected_subject,
        detected_topic=solution.detected_topic,
        difficulty=solution.difficulty,
        answer=solution.answer,
        solution_steps=list(solution.solution_steps),
        solution_steps_he=list(solution.solution_steps_he),
        tip=solution.tip,
        tip_he=solution.tip_he,
        ai_confidence=solution.ai_confidence,
    )

    if isinstance(solution, ComplexSolution):
        solved.key_insight = solution.key_insight
        solved.key_insight_he = solution.key_insight_he
        solved.common_mistakes = list(solution.common_mistakes)
        solved.common_mistakes_he = list(solution.common_mistakes_he)

    return repair_solution(solved)


def repair_solution(solved: SolvedQuestion) -> SolvedQuestion:
    """
    Enforce the bilingual contract the prompts ask for.

    - tips longer than 150 characters are truncated
    - confidence is clamped to [0, 10]
    - the shorter step list is padded with the other language's steps, so
      EN and HE always have the same length

    Repairs are recorded in ``processing_notes``.
    """
    notes: List[str] = []

    if len(solved.tip) > MAX_TIP_CHARS:
        solved.tip = _truncate(solved.tip)
        notes.append("tip truncated")
    if len(solved.tip_he) > MAX_TIP_CHARS:
        solved.tip_he = _truncate(solved.tip_he)
        notes.append("Hebrew tip truncated")

    clamped = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, float(solved.ai_confidence)))
    if clamped != solved.ai_confidence:
        notes.append(f"confidence {solved.ai_confidence} clamped")
        solved.ai_confidence = clamped

    en_count = len(solved.solution_steps)
    he_count = len(solved.solution_steps_he)
    if en_count != he_count:
        if en_count > he_count:
            solved.solution_steps_he = solved.solution_steps_he + solved.solution_steps[he_count:]
        else:
            solved.solution_steps = solved.solution_steps + solved.solution_steps_he[en_count:]
        notes.append(f"step counts differed (en={en_count}, he={he_count})")

    if notes:
        logger.warning(f"Repaired solution for question {solved.order_index}: {'; '.join(notes)}")
        solved.processing_notes = _join_notes(solved.processing_notes, notes)

    return solved


def _truncate(text: str) -> str:
    return text[:MAX_TIP_CHARS - 1].rstrip() + "…"


def _join_notes(existing: Optional[str], notes: List[str]) -> str:
    joined = "; ".join(notes)
    return f"{existing}; {joined}" if existing else joined
