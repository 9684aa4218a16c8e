"""
Unit tests for illustration decisions and generation.
"""
import base64
from unittest.mock import Mock, patch

from core.ai_gateway import AIGatewayError, GeneratedImage
from core.blob_storage import BlobStorageError
from core.config import PipelineConfig
from models.homework_models import (
    IllustrationRequest,
    IllustrationResult,
    QuestionCategory,
    QuestionClassification,
    QuestionComplexity,
    VisualizationNeed,
)
from services.illustration.decision_engine import (
    CATEGORY_PROMPT_TEMPLATES,
    generate_targeted_prompt_prefix,
    should_generate_image,
)
from services.illustration.illustration_generator import IllustrationGenerator


def classification(need, category, reason=None):
    return QuestionClassification(
        complexity=QuestionComplexity.MEDIUM,
        estimated_steps=3,
        visualization_need=need,
        visualization_reason=reason,
        question_category=category,
        can_batch_process=False,
    )


def image_client():
    client = Mock()
    client.generate_text.return_value = "  A block on a 30 degree incline  "
    client.generate_image.return_value = [
        GeneratedImage(base64=base64.b64encode(b"\x89PNG fake").decode(), media_type="image/png")
    ]
    return client


def storage_mock():
    storage = Mock()
    storage.new_file_id.return_value = "file123"
    storage.put.return_value = "https://storage.example/files/file123/view"
    return storage


class TestShouldGenerateImage:
    """Test the illustration decision rules."""

    def test_not_needed_is_final(self):
        """Test that not_needed wins even for physics with keywords."""
        c = classification(VisualizationNeed.NOT_NEEDED, QuestionCategory.PHYSICS_SETUP)
        assert should_generate_image(c, "A ball is thrown...") is False

    def test_calculation_without_keywords(self):
        c = classification(VisualizationNeed.HELPFUL, QuestionCategory.CALCULATION)
        assert should_generate_image(c, "Find the derivative of x^2") is False

    def test_calculation_with_keywords(self):
        c = classification(VisualizationNeed.HELPFUL, QuestionCategory.CALCULATION)
        assert should_generate_image(c, "A block slides down a frictionless incline") is True

    def test_visual_categories_always_included(self):
        for category in (QuestionCategory.PHYSICS_SETUP, QuestionCategory.GEOMETRY, QuestionCategory.GRAPH):
            c = classification(VisualizationNeed.HELPFUL, category)
            assert should_generate_image(c, "Solve it") is True

    def test_word_problem_needs_keywords(self):
        c = classification(VisualizationNeed.REQUIRED, QuestionCategory.WORD_PROBLEM)
        assert should_generate_image(c, "Dana buys 3 apples") is False
        assert should_generate_image(c, "A ladder forms a triangle with the wall") is True

    def test_keywords_case_insensitive(self):
        c = classification(VisualizationNeed.HELPFUL, QuestionCategory.PROOF)
        assert should_generate_image(c, "As shown in the FIGURE, prove the claim") is True


class TestTargetedPromptPrefix:
    """Test category prompt prefixes."""

    def test_reason_prepended(self):
        prefix = generate_targeted_prompt_prefix(QuestionCategory.GEOMETRY, "Shows the inscribed angle")
        assert prefix == f"Shows the inscribed angle. {CATEGORY_PROMPT_TEMPLATES[QuestionCategory.GEOMETRY]}"

    def test_no_template_categories_empty(self):
        assert generate_targeted_prompt_prefix(QuestionCategory.PROOF) == ""


class TestGenerateIllustration:
    """Test the prompt, image and upload stages."""

    def test_success(self):
        client = image_client()
        storage = storage_mock()
        c = classification(VisualizationNeed.REQUIRED, QuestionCategory.PHYSICS_SETUP, "Shows forces")

        result = IllustrationGenerator(client=client, storage=storage).generate_illustration(
            "A block slides down an incline", "Physics 1", "user42", c
        )

        assert result == IllustrationResult.succeeded(
            image_url="https://storage.example/files/file123/view", file_id="file123"
        )
        instruction = client.generate_text.call_args.kwargs["prompt"]
        assert instruction.startswith("Generate an image prompt for this Physics 1 question. Focus on: Shows forces.")
        assert instruction.endswith("Question:\nA block slides down an incline")
        image_prompt = client.generate_image.call_args.kwargs["prompt"]
        assert image_prompt == "Generate an educational physics/math diagram: A block on a 30 degree incline"

        args, kwargs = storage.put.call_args
        assert args[0] == "file123"
        assert args[1] == b"\x89PNG fake"
        assert kwargs["filename"] == "illustration-file123.png"
        assert kwargs["permissions"] == ['read("any")', 'delete("user:user42")']

    def test_no_image_generated(self):
        client = image_client()
        client.generate_image.return_value = []
        storage = storage_mock()

        result = IllustrationGenerator(client=client, storage=storage).generate_illustration(
            "q", "Calculus", "user42"
        )

        assert result.success is False
        assert result.error == "No image generated"
        storage.put.assert_not_called()

    def test_gateway_failure_returned_not_raised(self):
        client = image_client()
        client.generate_text.side_effect = AIGatewayError("quota exceeded")

        result = IllustrationGenerator(client=client, storage=storage_mock()).generate_illustration(
            "q", "Calculus", "user42"
        )

        assert result.success is False
        assert "quota exceeded" in result.error

    @patch("core.transaction.time.sleep")
    def test_upload_retried_then_failed(self, mock_sleep):
        storage = storage_mock()
        storage.put.side_effect = BlobStorageError("503 Service Unavailable")

        result = IllustrationGenerator(client=image_client(), storage=storage).generate_illustration(
            "q", "Calculus", "user42"
        )

        assert result.success is False
        assert storage.put.call_count == 3
        assert mock_sleep.call_count == 2


class TestGenerateBatchIllustrations:
    """Test sequential generation with per-item isolation."""

    def test_failure_isolated_and_sequential(self):
        """Test that item 2 of 4 throwing does not stop items 3 and 4."""
        events = []
        generator = IllustrationGenerator(
            client=image_client(),
            storage=storage_mock(),
            config=PipelineConfig(illustration_delay_seconds=1.5),
            sleep=lambda seconds: events.append(("sleep", seconds)),
        )

        def generate(question_text, subject, user_id, classification=None):
            events.append(("generate", question_text))
            if question_text == "q2":
                raise RuntimeError("renderer crashed")
            return IllustrationResult.succeeded(image_url=f"url-{question_text}", file_id=question_text)

        generator.generate_illustration = Mock(side_effect=generate)
        requests = [IllustrationRequest(f"id{i}", f"q{i}", "Physics 1") for i in range(1, 5)]

        results = generator.generate_batch_illustrations(requests, "user42")

        assert set(results) == {"id1", "id2", "id3", "id4"}
        assert results["id2"].success is False
        assert results["id2"].error == "renderer crashed"
        assert all(results[k].success for k in ("id1", "id3", "id4"))
        assert events == [
            ("generate", "q1"), ("sleep", 1.5),
            ("generate", "q2"), ("sleep", 1.5),
            ("generate", "q3"), ("sleep", 1.5),
            ("generate", "q4"),
        ]

    def test_filtering(self):
        generator = IllustrationGenerator(client=image_client(), storage=storage_mock(), sleep=Mock())
        generator.generate_illustration = Mock(
            return_value=IllustrationResult.succeeded(image_url="u", file_id="f")
        )
        requests = [
            IllustrationRequest("main", "A ball is thrown upward", "Physics 1",
                                classification=classification(VisualizationNeed.REQUIRED, QuestionCategory.PHYSICS_SETUP)),
            IllustrationRequest("sub", "Find the height", "Physics 1", is_sub_question=True),
            IllustrationRequest("algebra", "Solve 2x = 4", "Algebra",
                                classification=classification(VisualizationNeed.NOT_NEEDED, QuestionCategory.CALCULATION)),
            IllustrationRequest("unclassified", "Solve 3x = 9", "Algebra"),
        ]

        results = generator.generate_batch_illustrations(requests, "user42")

        assert set(results) == {"main", "unclassified"}
        assert generator.sleep.call_count == 1


class TestDeleteIllustration:
    def test_delete_success(self):
        storage = storage_mock()
        assert IllustrationGenerator(client=Mock(), storage=storage).delete_illustration("f1") is True
        storage.delete.assert_called_once_with("f1")

    def test_delete_failure_returns_false(self):
        storage = storage_mock()
        storage.delete.side_effect = BlobStorageError("404")
        assert IllustrationGenerator(client=Mock(), storage=storage).delete_illustration("f1") is False
