"""
Unit tests for the question classifier.
"""
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from core.ai_gateway import AIGatewayError
from models.ai_schemas import ClassificationResponse, QuestionClassificationItem
from models.homework_models import (
    QuestionCategory,
    QuestionClassification,
    QuestionComplexity,
    VisualizationNeed,
)
from services.classification.question_classifier import QuestionClassifier


def classification_item(index, **overrides):
    fields = {
        "question_index": index,
        "complexity": "simple",
        "estimated_steps": 2,
        "visualization_need": "not_needed",
        "question_category": "calculation",
        "can_batch_process": True,
    }
    fields.update(overrides)
    return QuestionClassificationItem(**fields)


class TestQuestionClassifier:
    """Test decoding of classification responses."""

    def test_empty_input_makes_no_call(self):
        client = Mock()
        assert QuestionClassifier(client=client).classify([]) == []
        client.generate_object.assert_not_called()

    def test_missing_index_gets_default(self, make_question):
        """Test that a question left out of the response gets the default classification."""
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(
            classifications=[
                classification_item(0),
                classification_item(2, complexity="complex", can_batch_process=False),
            ]
        )
        questions = [make_question(i) for i in range(3)]

        result = QuestionClassifier(client=client).classify(questions)

        assert len(result) == 3
        assert result[1].classification == QuestionClassification.default()
        assert result[0].classification.can_batch_process is True
        assert result[2].classification.complexity == QuestionComplexity.COMPLEX

    def test_sub_question_never_batchable(self, make_question):
        """Test that sub-questions are forced out of batching."""
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(
            classifications=[classification_item(0, can_batch_process=True)]
        )
        question = make_question(
            0, is_sub_question=True, parent_context="A car moves at 20 m/s.", sub_question_label="a"
        )

        result = QuestionClassifier(client=client).classify([question])

        assert result[0].classification.can_batch_process is False

    def test_call_failure_yields_defaults(self, make_question):
        client = Mock()
        client.generate_object.side_effect = AIGatewayError("provider down")
        questions = [make_question(i) for i in range(4)]

        result = QuestionClassifier(client=client).classify(questions)

        assert [q.order_index for q in result] == [0, 1, 2, 3]
        assert all(q.classification == QuestionClassification.default() for q in result)

    def test_duplicate_index_first_answer_wins(self, make_question):
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(
            classifications=[
                classification_item(0, question_category="proof"),
                classification_item(0, question_category="geometry"),
            ]
        )

        result = QuestionClassifier(client=client).classify([make_question(0)])

        assert result[0].classification.question_category == QuestionCategory.PROOF

    def test_reason_dropped_when_not_needed(self, make_question):
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(
            classifications=[
                classification_item(0, visualization_reason="Shows the curve"),
                classification_item(
                    1,
                    visualization_need="required",
                    visualization_reason="Projectile path",
                    question_category="physics_setup",
                ),
            ]
        )

        result = QuestionClassifier(client=client).classify([make_question(0), make_question(1)])

        assert result[0].classification.visualization_reason is None
        assert result[1].classification.visualization_need == VisualizationNeed.REQUIRED
        assert result[1].classification.visualization_reason == "Projectile path"

    def test_prompt_marks_sub_questions_with_context(self, make_question):
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(classifications=[])
        context = "A ladder leans against a wall. " * 10
        questions = [
            make_question(0, text="Main question"),
            make_question(1, text="Find the angle", is_sub_question=True,
                          parent_context=context, sub_question_label="b"),
        ]

        QuestionClassifier(client=client).classify(questions)

        prompt = client.generate_object.call_args.kwargs["prompt"]
        assert "[0]: Main question" in prompt
        assert "[1] (sub-question b): " in prompt
        assert f"Context: {context[:100]}... Find the angle" in prompt

    def test_estimated_steps_passed_through(self, make_question):
        """Test that a definition question keeps zero estimated steps."""
        client = Mock()
        client.generate_object.return_value = ClassificationResponse(
            classifications=[classification_item(0, estimated_steps=0, question_category="definition")]
        )

        result = QuestionClassifier(client=client).classify([make_question(0)])

        assert result[0].classification.estimated_steps == 0


class TestClassificationSchema:
    """Test response schema constraints."""

    def test_negative_estimated_steps_rejected(self):
        with pytest.raises(ValidationError):
            classification_item(0, estimated_steps=-2)
