"""
Unit tests for graph classification.
"""
import math
import threading
import time
from unittest.mock import Mock

from core.ai_gateway import AIGatewayError
from core.config import PipelineConfig
from models.ai_schemas import GraphClassificationResponse
from models.homework_models import GraphClassification, GraphType
from services.graphing.graph_classifier import GraphClassifier, GraphQuestion, default_domain


def graph_response(**overrides):
    fields = {
        "graphable": True,
        "graphable_function": "x**2 - 4",
        "graph_type": "polynomial",
        "graph_domain_min": -3.0,
        "graph_domain_max": 3.0,
        "confidence": 0.9,
    }
    fields.update(overrides)
    return GraphClassificationResponse(**fields)


class TestClassifyQuestion:
    """Test decoding of single classifications."""

    def test_graphable_function_kept(self):
        client = Mock()
        client.generate_object.return_value = graph_response()

        result = GraphClassifier(client=client).classify_question("Sketch y = x^2 - 4")

        assert result.graphable is True
        assert result.graphable_function == "x**2 - 4"
        assert result.graph_type == GraphType.POLYNOMIAL
        assert result.graph_domain == (-3.0, 3.0)
        assert result.confidence == 0.9

    def test_invalid_expression_not_graphable(self):
        """Test that an expression failing validation is never surfaced."""
        client = Mock()
        client.generate_object.return_value = graph_response(graphable_function="x + ")

        result = GraphClassifier(client=client).classify_question("Sketch something")

        assert result == GraphClassification.not_graphable()

    def test_missing_function_not_graphable(self):
        client = Mock()
        client.generate_object.return_value = graph_response(graphable_function=None)

        assert GraphClassifier(client=client).classify_question("q").graphable is False

    def test_not_graphable_response(self):
        client = Mock()
        client.generate_object.return_value = graph_response(
            graphable=False, graphable_function=None, confidence=0.8
        )

        result = GraphClassifier(client=client).classify_question("Prove that sqrt(2) is irrational")

        assert result.graphable is False
        assert result.graphable_function is None

    def test_call_failure_not_graphable(self):
        client = Mock()
        client.generate_object.side_effect = AIGatewayError("timeout")

        assert GraphClassifier(client=client).classify_question("q") == GraphClassification.not_graphable()


class TestDomainDefaults:
    """Test display range fallbacks."""

    def test_trigonometric_default(self):
        client = Mock()
        client.generate_object.return_value = graph_response(
            graphable_function="sin(x)", graph_type="trigonometric",
            graph_domain_min=None, graph_domain_max=None,
        )

        result = GraphClassifier(client=client).classify_question("Sketch sin(x)")

        assert result.graph_domain == (-2 * math.pi, 2 * math.pi)

    def test_logarithmic_default(self):
        assert default_domain(GraphType.LOGARITHMIC) == (0.1, 10.0)

    def test_inverted_domain_replaced(self):
        client = Mock()
        client.generate_object.return_value = graph_response(graph_domain_min=4.0, graph_domain_max=-4.0)

        result = GraphClassifier(client=client).classify_question("q")

        assert result.graph_domain == (-5.0, 5.0)


class TestClassifyBatch:
    """Test chunked concurrent classification."""

    def test_failure_isolated_per_question(self):
        def classify(**kwargs):
            if "question 3" in kwargs["prompt"]:
                raise AIGatewayError("boom")
            return graph_response()

        client = Mock()
        client.generate_object.side_effect = classify
        questions = [GraphQuestion(i, f"question {i}") for i in range(7)]

        results = GraphClassifier(client=client, config=PipelineConfig(graph_chunk_size=3)).classify_batch(questions)

        assert set(results) == set(range(7))
        assert results[3] == GraphClassification.not_graphable()
        assert all(results[i].graphable for i in range(7) if i != 3)
        assert client.generate_object.call_count == 7

    def test_empty_input(self):
        client = Mock()
        assert GraphClassifier(client=client).classify_batch([]) == {}
        client.generate_object.assert_not_called()

    def test_chunks_run_concurrently_and_in_sequence(self):
        """Test that a chunk runs at once and the next starts after it fully resolves."""
        lock = threading.Lock()
        events = []
        in_flight = [0]
        peak = [0]

        def classify(**kwargs):
            index = int(kwargs["prompt"].rsplit(" ", 1)[-1])
            with lock:
                events.append(("start", index))
                in_flight[0] += 1
                peak[0] = max(peak[0], in_flight[0])
            time.sleep(0.2)
            with lock:
                in_flight[0] -= 1
                events.append(("end", index))
            return graph_response()

        client = Mock()
        client.generate_object.side_effect = classify
        questions = [GraphQuestion(i, f"question {i}") for i in range(7)]

        results = GraphClassifier(client=client, config=PipelineConfig(graph_chunk_size=5)).classify_batch(questions)

        assert set(results) == set(range(7))
        assert peak[0] == 5
        last_first_chunk_end = max(i for i, (kind, index) in enumerate(events) if kind == "end" and index < 5)
        first_second_chunk_start = min(i for i, (kind, index) in enumerate(events) if kind == "start" and index >= 5)
        assert last_first_chunk_end < first_second_chunk_start
