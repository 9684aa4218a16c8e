"""
Main pipeline orchestration for homework solving.
"""
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from core.config import PipelineConfig, default_config
from models.homework_models import (
    ClassifiedQuestion,
    ExtractedQuestion,
    GraphClassification,
    IllustrationRequest,
    QuestionRecord,
    SolvedQuestion,
)
from services.classification.question_classifier import QuestionClassifier
from services.classification.strategy_router import create_batches, group_by_processing_strategy
from services.graphing.graph_classifier import GraphClassifier, GraphQuestion
from services.illustration.illustration_generator import IllustrationGenerator
from services.notification.completion_notifier import CompletionNotifier
from services.solving.adaptive_solver import AdaptiveSolver
from services.solving.batch_solver import BatchSolver, estimate_token_savings
from services.solving.solution_builder import MISSING_SOLUTION, placeholder_solution

logger = logging.getLogger(__name__)


@dataclass
class HomeworkRunResult:
    """Outcome of one pipeline run."""
    homework_id: str
    success: bool
    records: List[QuestionRecord] = field(default_factory=list)
    error: Optional[str] = None
    token_savings: Optional[Dict[str, int]] = None
    notified: bool = False

    @property
    def question_count(self) -> int:
        return len(self.records)


def new_question_id() -> str:
    return f"q_{uuid.uuid4().hex[:12]}"


class HomeworkPipeline:
    """Orchestrates classification, solving, graphing, illustration and storage."""

    def __init__(
        self,
        classifier: Optional[QuestionClassifier] = None,
        batch_solver: Optional[BatchSolver] = None,
        adaptive_solver: Optional[AdaptiveSolver] = None,
        graph_classifier: Optional[GraphClassifier] = None,
        illustration_generator: Optional[IllustrationGenerator] = None,
        result_store=None,
        notifier: Optional[CompletionNotifier] = None,
        config: PipelineConfig = default_config,
    ):
        self.config = config
        self.classifier = classifier or QuestionClassifier(config=config)
        self.batch_solver = batch_solver or BatchSolver(config=config)
        self.adaptive_solver = adaptive_solver or AdaptiveSolver(config=config)
        self.graph_classifier = graph_classifier or GraphClassifier(config=config)
        self.illustration_generator = illustration_generator or IllustrationGenerator(config=config)
        if result_store is None:
            from services.persistence.result_store import ResultStore
            result_store = ResultStore()
        self.result_store = result_store
        self.notifier = notifier or CompletionNotifier()

    def run(
        self,
        homework_id: str,
        user_id: str,
        questions: Sequence[ExtractedQuestion],
        generate_illustrations: bool = False,
    ) -> HomeworkRunResult:
        """
        Run the complete pipeline for one homework.

        Pipeline Stages:
        1. Classification (one call for all questions)
        2. Strategy routing
        3. Batch and adaptive solving, with graph classification alongside
        4. Merge by order index
        5. Illustrations (optional)
        6. Storage (single transaction)
        7. Completion notification

        Stages 1-5 never fail the run; a storage failure is reported as a
        failed run through the notifier.
        """
        logger.info(f"Starting homework {homework_id} with {len(questions)} questions")
        start_time = time.monotonic()
        result = HomeworkRunResult(homework_id=homework_id, success=False)

        try:
            # STAGE 1-2: Classification and routing
            classified = self.classifier.classify(questions)
            groups = group_by_processing_strategy(classified)

            if groups.batchable:
                batch_count = len(create_batches(groups.batchable, self.config.max_batch_size))
                result.token_savings = estimate_token_savings(
                    batch_count, -(-len(groups.batchable) // batch_count)
                )
                logger.info(f"Estimated token savings: {result.token_savings['savings_percent']}%")

            # STAGE 3: Solve and classify graphs concurrently
            with ThreadPoolExecutor(max_workers=3) as executor:
                batch_future = executor.submit(self.batch_solver.solve_batches, groups.batchable)
                adaptive_future = executor.submit(
                    self.adaptive_solver.solve_multiple, groups.standard + groups.complex
                )
                graph_future = executor.submit(
                    self.graph_classifier.classify_batch,
                    [GraphQuestion(q.order_index, self._full_text(q)) for q in classified],
                )
                solved = batch_future.result() + adaptive_future.result()
                graphs = graph_future.result()

            # STAGE 4: Merge
            result.records = self._merge(classified, solved, graphs)

            # STAGE 5: Illustrations
            if generate_illustrations and result.records:
                self._attach_illustrations(result.records, user_id)

            # STAGE 6: Storage
            self.result_store.save_records(homework_id, user_id, result.records)
            result.success = True

        except Exception as e:
            logger.error(f"Homework {homework_id} failed: {e}")
            result.error = str(e) or type(e).__name__

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Homework {homework_id} {'completed' if result.success else 'failed'} "
            f"in {duration_ms}ms with {result.question_count} questions"
        )

        # STAGE 7: Notification
        result.notified = self.notifier.notify(
            homework_id,
            "completed" if result.success else "failed",
            question_count=result.question_count if result.success else 0,
            error=result.error,
        )
        return result

    @staticmethod
    def _full_text(question: ClassifiedQuestion) -> str:
        if question.is_sub_question and question.parent_context:
            return f"{question.parent_context}\n\n{question.question_text}"
        return question.question_text

    @staticmethod
    def _merge(
        classified: Sequence[ClassifiedQuestion],
        solved: Sequence[SolvedQuestion],
        graphs: Dict[int, GraphClassification],
    ) -> List[QuestionRecord]:
        """One record per classified question, in order index order."""
        solved_by_index: Dict[int, SolvedQuestion] = {}
        for item in solved:
            solved_by_index.setdefault(item.order_index, item)

        records = []
        for question in sorted(classified, key=lambda q: q.order_index):
            solution = solved_by_index.get(question.order_index)
            if solution is None:
                logger.warning(f"No solution for question {question.order_index}, using placeholder")
                solution = placeholder_solution(question, MISSING_SOLUTION)
            records.append(QuestionRecord(
                question_id=new_question_id(),
                solved=solution,
                graph=graphs.get(question.order_index, GraphClassification.not_graphable()),
            ))
        return records

    def _attach_illustrations(self, records: List[QuestionRecord], user_id: str) -> None:
        requests = [
            IllustrationRequest(
                question_id=record.question_id,
                question_text=self._full_text(record.solved.question),
                subject=record.solved.detected_subject,
                is_sub_question=record.solved.question.is_sub_question,
                classification=record.solved.classification,
            )
            for record in records
        ]
        illustrations = self.illustration_generator.generate_batch_illustrations(requests, user_id)
        for record in records:
            record.illustration = illustrations.get(record.question_id)
