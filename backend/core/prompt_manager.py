"""
Centralized prompt file management with fallback templates.
"""
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class PromptManager:
    """Manages prompt file loading with consistent fallback behavior."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        if prompts_dir is None:
            from core.config import PROMPTS_DIR
            prompts_dir = PROMPTS_DIR
        self.prompts_dir = prompts_dir
        self.loaded_prompts: Dict[str, str] = {}

        # Fallback templates
        self.fallback_templates = {
            "question_classification": self._get_classification_fallback(),
            "batch_solving": self._get_batch_solving_fallback(),
            "adaptive_solving": self._get_adaptive_solving_fallback(),
            "graph_classification": self._get_graph_classification_fallback(),
            "illustration_prompt": self._get_illustration_prompt_fallback(),
        }

    def get_prompt(self, prompt_name: str) -> str:
        """
        Load prompt by name with fallback.

        Args:
            prompt_name: Name of prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        # Return cached if already loaded
        if prompt_name in self.loaded_prompts:
            return self.loaded_prompts[prompt_name]

        # Try to load from file
        prompt_file = self.prompts_dir / f"{prompt_name}.txt"

        if prompt_file.exists():
            try:
                template = prompt_file.read_text(encoding="utf-8")

                # Validate not empty
                if not template.strip():
                    raise ValueError(f"Prompt file is empty: {prompt_file}")

                # Cache and return
                self.loaded_prompts[prompt_name] = template
                return template

            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load prompt file {prompt_file}: {e}")
                # Fall through to fallback

        # Use fallback template
        if prompt_name in self.fallback_templates:
            logger.info(f"Using fallback template for: {prompt_name}")
            template = self.fallback_templates[prompt_name]
            self.loaded_prompts[prompt_name] = template
            return template

        # No fallback available
        raise FileNotFoundError(
            f"Prompt file not found and no fallback available: {prompt_name}.txt. "
            f"Expected at: {prompt_file}"
        )

    def _get_classification_fallback(self) -> str:
        """Fallback template for question classification."""
        return """You classify homework questions to pick a solving strategy.

For each question index return:
- complexity: "simple" (single step), "medium" (2-3 concepts or word problem setup), "complex" (proofs, derivations, multi-part analysis)
- estimatedSteps: expected number of solution steps (0 for definitions)
- visualizationNeed: "required" (physical or geometric scenario), "helpful" (graphs, vectors), "not_needed" (pure algebra, calculus, proofs)
- questionCategory: calculation, word_problem, proof, graph, physics_setup, geometry or definition
- canBatchProcess: true ONLY if complexity is "simple", it is not a sub-question and it does not refer to a previous question"""

    def _get_batch_solving_fallback(self) -> str:
        """Fallback template for batch solving."""
        return """You are a math and physics tutor solving several simple homework questions.
Solve each question in 1-3 steps, in English AND Hebrew, with the same number of steps in both.
Preserve all LaTeX and mathematical symbols. Keep each tip to one sentence (max 150 characters).
Return one solution per question index."""

    def _get_adaptive_solving_fallback(self) -> str:
        """Fallback template for adaptive solving."""
        return """You are an expert math and physics tutor.
Solve the given homework question in BOTH English AND Hebrew.
The "answer" field MUST contain the final numerical or symbolic answer.
Preserve all LaTeX, symbols and variable names. Both EN and HE MUST have the SAME number of steps."""

    def _get_graph_classification_fallback(self) -> str:
        """Fallback template for graph classification."""
        return """Decide whether the question contains a single-variable function of x that can be graphed
(explicit y= or f(x)= forms, integrands, functions inside derivatives or limits, bare expressions).
Pure arithmetic, matrices, proofs without a function and definitions are not graphable.
Write graphableFunction using only numbers, x, + - * / **, parentheses, pi, e and
sin cos tan sqrt log ln exp abs. Suggest a domain: trigonometric [-6.28, 6.28],
logarithmic [0.1, 10], otherwise [-5, 5]."""

    def _get_illustration_prompt_fallback(self) -> str:
        """Fallback template for illustration prompt synthesis."""
        return """Convert the homework question into a concise image generation prompt for a clean,
2D vector-style educational diagram with blue, red and green accents on a light background.
No text labels in the image. Return ONLY the prompt."""


# Global prompt manager instance
prompt_manager = PromptManager()
