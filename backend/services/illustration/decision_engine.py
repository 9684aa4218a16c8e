"""
Decides whether a generated illustration would add value to a question.
"""
from typing import Dict, List, Optional

from models.homework_models import (
    QuestionCategory,
    QuestionClassification,
    VisualizationNeed,
)

# Category-specific prompt templates, more targeted than a generic diagram
CATEGORY_PROMPT_TEMPLATES: Dict[QuestionCategory, str] = {
    QuestionCategory.PHYSICS_SETUP: (
        "Clean physics diagram showing the physical scenario. Include relevant force arrows, "
        "motion paths, and coordinate system. Simple 2D vector style, textbook illustration "
        "with light background."
    ),
    QuestionCategory.GEOMETRY: (
        "Precise geometric diagram with clearly labeled shapes, angles, and measurements. "
        "Use clean lines and minimal colors. Educational textbook style."
    ),
    QuestionCategory.GRAPH: (
        "Clear coordinate plane with properly drawn function curve or data points. "
        "Include axis labels and gridlines. Mathematical graph style."
    ),
    QuestionCategory.WORD_PROBLEM: (
        "Simple illustration showing the real-world scenario described. "
        "Focus on key elements mentioned. Clean educational style."
    ),
    QuestionCategory.CALCULATION: "",
    QuestionCategory.PROOF: "",
    QuestionCategory.DEFINITION: "",
}

# Words suggesting a picture would help
VISUALIZATION_KEYWORDS: Dict[str, List[str]] = {
    "physics": [
        "thrown", "slides", "falls", "rotates", "circuit", "force", "velocity",
        "acceleration", "projectile", "incline", "pendulum", "spring", "wave",
    ],
    "geometry": [
        "triangle", "circle", "rectangle", "angle", "perpendicular", "parallel",
        "tangent", "polygon", "area", "perimeter",
    ],
    "graph": [
        "graph", "plot", "curve", "function", "intersection", "maximum", "minimum", "asymptote",
    ],
    "diagram": ["shown in", "figure", "diagram", "illustrated", "as depicted"],
}

NO_IMAGE_CATEGORIES = {
    QuestionCategory.CALCULATION,
    QuestionCategory.PROOF,
    QuestionCategory.DEFINITION,
}

IMAGE_CATEGORIES = {
    QuestionCategory.PHYSICS_SETUP,
    QuestionCategory.GEOMETRY,
    QuestionCategory.GRAPH,
}


def has_visualization_keywords(question_text: str) -> bool:
    """True if the text mentions physical, spatial or diagram vocabulary."""
    lower_text = question_text.lower()
    return any(
        keyword in lower_text
        for keywords in VISUALIZATION_KEYWORDS.values()
        for keyword in keywords
    )


def should_generate_image(classification: QuestionClassification, question_text: str) -> bool:
    """
    Decide whether an illustration is worth generating.

    A ``not_needed`` visualization is final. Calculation, proof and definition
    questions, and word problems, still get one when the text has visual
    keywords; physics, geometry and graph questions always do.
    """
    if classification.visualization_need == VisualizationNeed.NOT_NEEDED:
        return False

    category = classification.question_category
    if category in NO_IMAGE_CATEGORIES:
        return has_visualization_keywords(question_text)

    if category in IMAGE_CATEGORIES:
        return True

    if category == QuestionCategory.WORD_PROBLEM:
        return has_visualization_keywords(question_text)

    # Visualization is required or helpful at this point
    return True


def generate_targeted_prompt_prefix(
    category: QuestionCategory,
    visualization_reason: Optional[str] = None,
) -> str:
    """Category template, preceded by the classifier's reason when given."""
    prefix = CATEGORY_PROMPT_TEMPLATES.get(category, "")
    if visualization_reason:
        prefix = f"{visualization_reason}. {prefix}"
    return prefix
