"""
Lightweight AI classification of homework questions for adaptive processing.
"""
import logging
from typing import Dict, List, Optional, Sequence

from core.ai_gateway import AIGatewayClient, ai_gateway
from core.config import PipelineConfig, default_config
from models.ai_schemas import ClassificationResponse, QuestionClassificationItem
from models.homework_models import (
    ClassifiedQuestion,
    ExtractedQuestion,
    QuestionClassification,
    QuestionComplexity,
    VisualizationNeed,
)

logger = logging.getLogger(__name__)

PARENT_CONTEXT_PREVIEW_CHARS = 100


class QuestionClassifier:
    """Classifies every question of a document in one gateway call."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        config: PipelineConfig = default_config,
    ):
        self.client = client or ai_gateway
        self.config = config

        from core.prompt_manager import prompt_manager
        self.system_prompt = prompt_manager.get_prompt("question_classification")

    def classify(self, questions: Sequence[ExtractedQuestion]) -> List[ClassifiedQuestion]:
        """
        Classify questions, keeping input length and order.

        Never raises: a question the response leaves out gets the default
        classification, and a failed call yields defaults for every question.
        """
        if not questions:
            return []

        logger.info(f"Classifying {len(questions)} questions")

        try:
            response = self.client.generate_object(
                model=self.config.classification_model,
                system=self.system_prompt,
                prompt=self._build_prompt(questions),
                schema=ClassificationResponse,
                temperature=self.config.classification_temperature,
            )
        except Exception as e:
            logger.error(f"Classification failed, using defaults for all questions: {e}")
            return [
                ClassifiedQuestion(question=q, classification=QuestionClassification.default())
                for q in questions
            ]

        by_index: Dict[int, QuestionClassificationItem] = {}
        for item in response.classifications:
            # First answer for an index wins
            by_index.setdefault(item.question_index, item)

        classified = []
        for index, question in enumerate(questions):
            item = by_index.get(index)
            if item is None:
                logger.warning(f"Missing classification for question {index}, using default")
                classification = QuestionClassification.default()
            else:
                classification = self._to_classification(item, question)
            classified.append(ClassifiedQuestion(question=question, classification=classification))

        self._log_summary(classified)
        return classified

    def _build_prompt(self, questions: Sequence[ExtractedQuestion]) -> str:
        lines = []
        for i, q in enumerate(questions):
            if q.is_sub_question:
                prefix = f"[{i}] (sub-question {q.sub_question_label or ''}): "
            else:
                prefix = f"[{i}]: "
            context = ""
            if q.parent_context:
                context = f"Context: {q.parent_context[:PARENT_CONTEXT_PREVIEW_CHARS]}... "
            lines.append(f"{prefix}{context}{q.question_text}")

        questions_text = "\n\n".join(lines)
        return f"Classify these {len(questions)} homework questions:\n\n{questions_text}"

    @staticmethod
    def _to_classification(
        item: QuestionClassificationItem,
        question: ExtractedQuestion,
    ) -> QuestionClassification:
        """Decode one response entry; sub-questions are never batchable."""
        reason = item.visualization_reason
        if item.visualization_need == VisualizationNeed.NOT_NEEDED:
            reason = None

        return QuestionClassification(
            complexity=item.complexity,
            estimated_steps=item.estimated_steps,
            visualization_need=item.visualization_need,
            visualization_reason=reason or None,
            question_category=item.question_category,
            can_batch_process=False if question.is_sub_question else item.can_batch_process,
        )

    @staticmethod
    def _log_summary(classified: Sequence[ClassifiedQuestion]) -> None:
        counts = {level.value: 0 for level in QuestionComplexity}
        needs_image = 0
        batchable = 0
        for q in classified:
            counts[q.classification.complexity.value] += 1
            if q.classification.visualization_need != VisualizationNeed.NOT_NEEDED:
                needs_image += 1
            if q.classification.can_batch_process:
                batchable += 1

        logger.info(
            f"Classification summary: simple={counts['simple']} medium={counts['medium']} "
            f"complex={counts['complex']} needs_image={needs_image} batchable={batchable}"
        )
