"""
Batch solving of simple questions: several questions per gateway call to
amortize the fixed system prompt and schema overhead.
"""
import logging
import math
from typing import Dict, List, Optional, Sequence

from core.ai_gateway import AIGatewayClient, ai_gateway
from core.config import PipelineConfig, default_config
from models.ai_schemas import BatchSolutionItem, BatchSolutionResponse
from models.homework_models import ClassifiedQuestion, SolvedQuestion
from services.classification.strategy_router import create_batches
from services.solving.solution_builder import (
    BATCH_FAILED,
    MISSING_SOLUTION,
    placeholder_solution,
    to_solved_question,
)

logger = logging.getLogger(__name__)

# Approximate token counts used for savings estimates
SYSTEM_PROMPT_TOKENS = 200  # Per request
SCHEMA_OVERHEAD_TOKENS = 100  # Per request
AVG_QUESTION_TOKENS = 50
AVG_RESPONSE_TOKENS = 150


class BatchSolvingError(Exception):
    """Raised when the gateway call for a whole batch fails."""
    pass


class BatchSolver:
    """Solves simple, standalone questions in bounded batches."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        config: PipelineConfig = default_config,
    ):
        self.client = client or ai_gateway
        self.config = config

        from core.prompt_manager import prompt_manager
        self.system_prompt = prompt_manager.get_prompt("batch_solving")

    def solve_batch(self, questions: Sequence[ClassifiedQuestion]) -> List[SolvedQuestion]:
        """
        Solve one batch with a single call.

        Questions the response leaves out get a placeholder. Raises
        BatchSolvingError if the call itself fails.
        """
        if not questions:
            return []

        if len(questions) < self.config.min_batch_size:
            logger.warning(
                f"Only {len(questions)} question(s) in batch, adaptive solving would suit better"
            )

        logger.info(f"Processing batch of {len(questions)} questions")

        questions_text = "\n\n".join(f"[Q{i}]: {q.question_text}" for i, q in enumerate(questions))
        try:
            response = self.client.generate_object(
                model=self.config.batch_solving_model,
                system=self.system_prompt,
                prompt=f"Solve these {len(questions)} simple homework questions:\n\n{questions_text}",
                schema=BatchSolutionResponse,
                temperature=self.config.batch_solving_temperature,
            )
        except Exception as e:
            raise BatchSolvingError(f"Batch solving failed: {e}") from e

        by_index: Dict[int, BatchSolutionItem] = {}
        for item in response.solutions:
            by_index.setdefault(item.question_index, item)

        solved = []
        for index, question in enumerate(questions):
            solution = by_index.get(index)
            if solution is None:
                logger.warning(f"Missing solution for question {index} (order {question.order_index})")
                solved.append(placeholder_solution(question, MISSING_SOLUTION))
            else:
                solved.append(to_solved_question(question, solution))

        return solved

    def solve_batches(self, questions: Sequence[ClassifiedQuestion]) -> List[SolvedQuestion]:
        """
        Split questions into batches and solve each one.

        A failed batch does not stop the rest: its questions get placeholders.
        The result always has one entry per input question, in input order.
        """
        if not questions:
            return []

        batches = create_batches(questions, self.config.max_batch_size)
        logger.info(f"Processing {len(batches)} batches for {len(questions)} questions")

        results: List[SolvedQuestion] = []
        for i, batch in enumerate(batches, start=1):
            try:
                results.extend(self.solve_batch(batch))
                logger.info(f"Completed batch {i}/{len(batches)}")
            except Exception as e:
                logger.error(f"Batch {i}/{len(batches)} failed: {e}")
                results.extend(placeholder_solution(q, BATCH_FAILED) for q in batch)

        return results


def estimate_token_savings(batch_count: int, questions_per_batch: int) -> Dict[str, int]:
    """
    Estimate tokens saved by batching, for monitoring only.

    Without batching every question pays the system prompt and schema
    overhead; with batching it is paid once per batch.
    """
    total_questions = batch_count * questions_per_batch
    per_request_overhead = SYSTEM_PROMPT_TOKENS + SCHEMA_OVERHEAD_TOKENS
    per_question = AVG_QUESTION_TOKENS + AVG_RESPONSE_TOKENS

    without_batch = total_questions * (per_request_overhead + per_question)
    with_batch = batch_count * per_request_overhead + total_questions * per_question
    savings = without_batch - with_batch

    savings_percent = 0
    if without_batch:
        # Half-up rounding, so .5 always rounds towards +inf
        savings_percent = int(math.floor(savings / without_batch * 100 + 0.5))

    return {
        "without_batch": without_batch,
        "with_batch": with_batch,
        "savings": savings,
        "savings_percent": savings_percent,
    }
