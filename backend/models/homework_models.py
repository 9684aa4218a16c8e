"""
Data models for homework questions as they move through the solving pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class QuestionComplexity(str, Enum):
    """Expected reasoning depth."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class VisualizationNeed(str, Enum):
    """Whether an illustration adds pedagogical value."""
    REQUIRED = "required"
    HELPFUL = "helpful"
    NOT_NEEDED = "not_needed"


class QuestionCategory(str, Enum):
    CALCULATION = "calculation"
    WORD_PROBLEM = "word_problem"
    PROOF = "proof"
    GRAPH = "graph"
    PHYSICS_SETUP = "physics_setup"
    GEOMETRY = "geometry"
    DEFINITION = "definition"


class HomeworkQuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    OPEN_ENDED = "open_ended"
    PROOF = "proof"
    CALCULATION = "calculation"
    WORD_PROBLEM = "word_problem"


class HomeworkDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GraphType(str, Enum):
    POLYNOMIAL = "polynomial"
    RATIONAL = "rational"
    TRIGONOMETRIC = "trigonometric"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    LIMIT = "limit"
    DERIVATIVE = "derivative"
    INTEGRAL = "integral"
    OTHER = "other"


@dataclass(frozen=True)
class ExtractedQuestion:
    """One question found in a source document."""
    order_index: int  # Correlation key across all annotation streams
    question_text: str
    is_sub_question: bool = False
    parent_context: Optional[str] = None  # Shown alongside sub-questions
    sub_question_label: Optional[str] = None  # "a", "b", "1", ...
    page_number: int = 1
    original_language: str = "en"  # 'en' | 'he'


@dataclass(frozen=True)
class QuestionClassification:
    """Lightweight pre-analysis used to pick a processing strategy."""
    complexity: QuestionComplexity
    estimated_steps: int
    visualization_need: VisualizationNeed
    question_category: QuestionCategory
    can_batch_process: bool
    visualization_reason: Optional[str] = None

    @classmethod
    def default(cls) -> "QuestionClassification":
        """Classification used when the classifier gave no answer for a question."""
        return cls(
            complexity=QuestionComplexity.MEDIUM,
            estimated_steps=3,
            visualization_need=VisualizationNeed.NOT_NEEDED,
            question_category=QuestionCategory.CALCULATION,
            can_batch_process=False,
        )

    def to_suggestions(self) -> Dict[str, Any]:
        """AI suggestions stored with the question for on-demand UI hints."""
        suggestions: Dict[str, Any] = {
            "visualizationNeeded": self.visualization_need != VisualizationNeed.NOT_NEEDED,
            "estimatedSteps": self.estimated_steps,
            "questionCategory": self.question_category.value,
        }
        if self.visualization_reason:
            suggestions["visualizationReason"] = self.visualization_reason
        return suggestions


@dataclass(frozen=True)
class ClassifiedQuestion:
    """Extracted question with its classification attached."""
    question: ExtractedQuestion
    classification: QuestionClassification

    @property
    def order_index(self) -> int:
        return self.question.order_index

    @property
    def question_text(self) -> str:
        return self.question.question_text

    @property
    def is_sub_question(self) -> bool:
        return self.question.is_sub_question

    @property
    def parent_context(self) -> Optional[str]:
        return self.question.parent_context

    @property
    def sub_question_label(self) -> Optional[str]:
        return self.question.sub_question_label

    @property
    def original_language(self) -> str:
        return self.question.original_language


@dataclass
class SolvedQuestion:
    """Classified question with a bilingual solution."""
    question: ClassifiedQuestion
    question_type: HomeworkQuestionType
    detected_subject: str
    difficulty: HomeworkDifficulty
    answer: str

    # EN and HE step lists must have the same length
    solution_steps: List[str] = field(default_factory=list)
    solution_steps_he: List[str] = field(default_factory=list)
    tip: str = ""
    tip_he: str = ""

    ai_confidence: float = 0.0  # 0-10
    detected_topic: Optional[str] = None

    # Complex questions only
    key_insight: Optional[str] = None
    key_insight_he: Optional[str] = None
    common_mistakes: List[str] = field(default_factory=list)
    common_mistakes_he: List[str] = field(default_factory=list)

    processing_notes: Optional[str] = None

    @property
    def order_index(self) -> int:
        return self.question.order_index

    @property
    def classification(self) -> QuestionClassification:
        return self.question.classification

    @property
    def is_placeholder(self) -> bool:
        return self.ai_confidence == 0 and self.answer.startswith("Error:")


@dataclass(frozen=True)
class GraphClassification:
    """Whether a question holds a graphable single-variable function."""
    graphable: bool
    confidence: float  # 0.0-1.0
    graphable_function: Optional[str] = None
    graph_type: Optional[GraphType] = None
    graph_domain: Optional[Tuple[float, float]] = None

    @classmethod
    def not_graphable(cls) -> "GraphClassification":
        return cls(graphable=False, confidence=0.0)


@dataclass(frozen=True)
class IllustrationResult:
    """Outcome of one illustration attempt."""
    success: bool
    image_url: Optional[str] = None
    file_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, image_url: str, file_id: str) -> "IllustrationResult":
        return cls(success=True, image_url=image_url, file_id=file_id)

    @classmethod
    def failed(cls, error: str) -> "IllustrationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class IllustrationRequest:
    """One worklist item for illustration generation."""
    question_id: str
    question_text: str
    subject: str
    is_sub_question: bool = False
    classification: Optional[QuestionClassification] = None


@dataclass
class QuestionRecord:
    """Final merged record for one question, ready to persist."""
    question_id: str
    solved: SolvedQuestion
    graph: GraphClassification = field(default_factory=GraphClassification.not_graphable)
    illustration: Optional[IllustrationResult] = None

    @property
    def order_index(self) -> int:
        return self.solved.order_index
