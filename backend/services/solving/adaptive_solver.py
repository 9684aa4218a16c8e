"""
Complexity-aware solving of single questions (standard and complex queues).
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Type

from core.ai_gateway import AIGatewayClient, ai_gateway
from core.config import PipelineConfig, default_config
from models.ai_schemas import AdaptiveSolution, ComplexSolution, SolutionFields
from models.homework_models import ClassifiedQuestion, QuestionComplexity, SolvedQuestion
from services.solving.solution_builder import SOLVE_FAILED, placeholder_solution, to_solved_question

logger = logging.getLogger(__name__)

COMPLEXITY_PROMPTS: Dict[QuestionComplexity, str] = {
    QuestionComplexity.SIMPLE: """
SIMPLE QUESTION - Be concise:
- Provide 1-2 clear steps
- Direct formula application
- Brief tip (1 sentence max)""",
    QuestionComplexity.MEDIUM: """
MEDIUM QUESTION - Standard detail:
- Provide 3-4 clear steps
- Show key transformations
- Include helpful tip""",
    QuestionComplexity.COMPLEX: """
COMPLEX QUESTION - Thorough explanation:
- Provide 5-7 detailed steps
- Explain reasoning at each step
- Include key insight about the concept
- Note common mistakes to avoid""",
}


class AdaptiveSolvingError(Exception):
    """Raised when a single question cannot be solved."""
    pass


class AdaptiveSolver:
    """Solves one question per call with depth matched to its complexity."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        config: PipelineConfig = default_config,
    ):
        self.client = client or ai_gateway
        self.config = config

        from core.prompt_manager import prompt_manager
        self.base_prompt = prompt_manager.get_prompt("adaptive_solving")

    def solve_adaptive(self, question: ClassifiedQuestion) -> SolvedQuestion:
        """Solve a single question; raises AdaptiveSolvingError on failure."""
        complexity = question.classification.complexity
        logger.info(f"Solving question {question.order_index} ({complexity.value})")

        system_prompt, schema, temperature = self._settings_for(complexity)
        try:
            solution = self.client.generate_object(
                model=self.config.adaptive_solving_model,
                system=system_prompt,
                prompt=self.build_question_prompt(question),
                schema=schema,
                temperature=temperature,
            )
        except Exception as e:
            raise AdaptiveSolvingError(f"Failed to solve question {question.order_index}: {e}") from e

        return to_solved_question(question, solution)

    def solve_multiple(self, questions: Sequence[ClassifiedQuestion]) -> List[SolvedQuestion]:
        """Solve questions one by one; failures become placeholders, never gaps."""
        results = []
        for question in questions:
            try:
                results.append(self.solve_adaptive(question))
            except Exception as e:
                logger.error(f"Using placeholder for question {question.order_index}: {e}")
                results.append(placeholder_solution(question, SOLVE_FAILED))
        return results

    @staticmethod
    def build_question_prompt(question: ClassifiedQuestion) -> str:
        """Question prompt, with the parent's context for sub-questions."""
        if question.is_sub_question and question.parent_context:
            return (
                "Solve this homework question:\n\n"
                f"CONTEXT (from main question):\n{question.parent_context}\n\n"
                f"SUB-QUESTION {question.sub_question_label or ''}:\n{question.question_text}\n\n"
                f"Original language: {question.original_language}"
            )

        return (
            "Solve this homework question:\n\n"
            f"{question.question_text}\n\n"
            f"Original language: {question.original_language}"
        )

    def _settings_for(
        self, complexity: QuestionComplexity
    ) -> Tuple[str, Type[SolutionFields], float]:
        system_prompt = self.base_prompt + COMPLEXITY_PROMPTS[complexity]
        if complexity == QuestionComplexity.SIMPLE:
            return system_prompt, AdaptiveSolution, self.config.adaptive_simple_temperature
        if complexity == QuestionComplexity.COMPLEX:
            return system_prompt, ComplexSolution, self.config.adaptive_complex_temperature
        return system_prompt, AdaptiveSolution, self.config.adaptive_medium_temperature
