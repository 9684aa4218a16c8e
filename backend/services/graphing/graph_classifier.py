"""
AI-powered detection of graphable functions in homework questions.
"""
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from core.ai_gateway import AIGatewayClient, ai_gateway
from core.config import PipelineConfig, default_config
from models.ai_schemas import GraphClassificationResponse
from models.homework_models import GraphClassification, GraphType
from services.classification.strategy_router import create_batches
from services.graphing.expression_parser import validate_function

logger = logging.getLogger(__name__)

TRIGONOMETRIC_DOMAIN = (-2 * math.pi, 2 * math.pi)
LOGARITHMIC_DOMAIN = (0.1, 10.0)
DEFAULT_DOMAIN = (-5.0, 5.0)


@dataclass(frozen=True)
class GraphQuestion:
    """Input for batch graph classification."""
    order_index: int
    question_text: str


def default_domain(graph_type: Optional[GraphType]) -> Tuple[float, float]:
    """Display range to use when the model suggests none."""
    if graph_type == GraphType.TRIGONOMETRIC:
        return TRIGONOMETRIC_DOMAIN
    if graph_type == GraphType.LOGARITHMIC:
        return LOGARITHMIC_DOMAIN
    return DEFAULT_DOMAIN


class GraphClassifier:
    """Detects graphable functions, one question per gateway call."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        config: PipelineConfig = default_config,
    ):
        self.client = client or ai_gateway
        self.config = config

        from core.prompt_manager import prompt_manager
        self.system_prompt = prompt_manager.get_prompt("graph_classification")

    def classify_question(self, question_text: str) -> GraphClassification:
        """Classify one question. Never raises; failures are not graphable."""
        try:
            response = self.client.generate_object(
                model=self.config.graph_classification_model,
                system=self.system_prompt,
                prompt=f"Analyze this math question for graphable content:\n\n{question_text}",
                schema=GraphClassificationResponse,
                temperature=self.config.graph_classification_temperature,
            )
            return self._to_classification(response)
        except Exception as e:
            logger.error(f"Failed to classify question for graphability: {e}")
            return GraphClassification.not_graphable()

    def classify_batch(self, questions: Sequence[GraphQuestion]) -> Dict[int, GraphClassification]:
        """
        Classify many questions, keyed by order index.

        Questions run concurrently within a chunk; the next chunk starts only
        once every classification of the previous one has resolved.
        """
        results: Dict[int, GraphClassification] = {}
        if not questions:
            return results

        logger.info(f"Classifying {len(questions)} questions for graphability")
        start_time = time.monotonic()

        chunks = create_batches(questions, self.config.graph_chunk_size)
        with ThreadPoolExecutor(max_workers=self.config.graph_chunk_size) as executor:
            for chunk in chunks:
                futures = {
                    executor.submit(self.classify_question, q.question_text): q.order_index
                    for q in chunk
                }
                for future in as_completed(futures):
                    order_index = futures[future]
                    try:
                        results[order_index] = future.result()
                    except Exception as e:
                        logger.error(f"Graph classification for question {order_index} failed: {e}")
                        results[order_index] = GraphClassification.not_graphable()

        duration_ms = int((time.monotonic() - start_time) * 1000)
        graphable_count = sum(1 for r in results.values() if r.graphable)
        logger.info(
            f"Graph classification completed in {duration_ms}ms. "
            f"Found {graphable_count}/{len(questions)} graphable questions"
        )
        return results

    @staticmethod
    def _to_classification(response: GraphClassificationResponse) -> GraphClassification:
        """Decode a response; expressions that fail validation are not graphable."""
        if not response.graphable:
            return GraphClassification(graphable=False, confidence=response.confidence)

        expression = (response.graphable_function or "").strip()
        if not expression:
            logger.warning("Graphable response without a function, treating as not graphable")
            return GraphClassification.not_graphable()

        if not validate_function(expression):
            logger.warning(f"Rejected invalid graph expression: {expression!r}")
            return GraphClassification.not_graphable()

        domain_min = response.graph_domain_min
        domain_max = response.graph_domain_max
        if domain_min is not None and domain_max is not None and domain_min < domain_max:
            domain = (domain_min, domain_max)
        else:
            domain = default_domain(response.graph_type)

        return GraphClassification(
            graphable=True,
            confidence=response.confidence,
            graphable_function=expression,
            graph_type=response.graph_type,
            graph_domain=domain,
        )
