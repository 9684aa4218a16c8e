"""
Persistence of solved homework questions.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from core.blob_storage import BlobStorageClient
from core.transaction import TransactionManager
from models.homework_models import QuestionRecord

logger = logging.getLogger(__name__)

QUESTION_COLUMNS = (
    "question_id", "homework_id", "user_id", "order_index", "question_text",
    "question_type", "is_sub_question", "parent_context", "sub_question_label", "page_number",
    "original_language", "ai_suggestions", "graphable", "graphable_function",
    "graph_type", "graph_domain_min", "graph_domain_max", "illustration_url",
    "illustration_file_id",
)

SOLUTION_COLUMNS = (
    "question_id", "homework_id", "detected_subject", "detected_topic", "difficulty",
    "answer", "solution_steps", "tip", "tip_he", "key_insight", "key_insight_he",
    "common_mistakes", "ai_confidence", "processing_notes",
)


def _insert_sql(table: str, columns: Sequence[str]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


class ResultStore:
    """Writes and reads homework questions with their solutions."""

    def __init__(self, database=None, storage: Optional[BlobStorageClient] = None):
        if database is None:
            from core.database import db
            database = db
        if storage is None:
            from core.blob_storage import blob_storage
            storage = blob_storage
        self.db = database
        self.storage = storage

    def save_records(self, homework_id: str, user_id: str, records: Sequence[QuestionRecord]) -> int:
        """
        Save all records in one transaction.

        If any write fails nothing is stored and illustrations already
        uploaded for these records are deleted before the error is re-raised.

        Returns:
            Number of records saved
        """
        manager = TransactionManager(self.db)
        for record in records:
            if record.illustration and record.illustration.file_id:
                manager.register_compensation(self._delete_file_handler(record.illustration.file_id))

        with manager.transaction() as conn:
            question_sql = _insert_sql("homework_questions", QUESTION_COLUMNS)
            solution_sql = _insert_sql("homework_solutions", SOLUTION_COLUMNS)
            for record in records:
                conn.execute(question_sql, self._question_row(homework_id, user_id, record))
                conn.execute(solution_sql, self._solution_row(homework_id, record))

        logger.info(f"Saved {len(records)} questions for homework {homework_id}")
        return len(records)

    def load_records(self, homework_id: str) -> List[Dict[str, Any]]:
        """Stored questions with their solutions, ordered by order index."""
        rows = self.db.execute(
            """
            SELECT q.*, s.detected_subject, s.detected_topic, s.difficulty, s.answer,
                   s.solution_steps, s.tip, s.tip_he, s.key_insight, s.key_insight_he,
                   s.common_mistakes, s.ai_confidence, s.processing_notes
            FROM homework_questions q
            LEFT JOIN homework_solutions s ON s.question_id = q.question_id
            WHERE q.homework_id = ?
            ORDER BY q.order_index
            """,
            (homework_id,),
        )

        results = []
        for row in rows:
            item = dict(row)
            steps = json.loads(item.pop("solution_steps") or "{}")
            mistakes = json.loads(item.pop("common_mistakes") or "{}")
            item["solution_steps"] = steps.get("en", [])
            item["solution_steps_he"] = steps.get("he", [])
            item["common_mistakes"] = mistakes.get("en", [])
            item["common_mistakes_he"] = mistakes.get("he", [])
            item["ai_suggestions"] = json.loads(item["ai_suggestions"] or "{}")
            item["is_sub_question"] = bool(item["is_sub_question"])
            item["graphable"] = bool(item["graphable"])
            results.append(item)
        return results

    def _delete_file_handler(self, file_id: str):
        def handler():
            logger.warning(f"Rolling back stored illustration {file_id}")
            self.storage.delete(file_id)
        return handler

    @staticmethod
    def _question_row(homework_id: str, user_id: str, record: QuestionRecord) -> tuple:
        solved = record.solved
        question = solved.question
        graph = record.graph
        domain = graph.graph_domain or (None, None)
        illustration = record.illustration if record.illustration and record.illustration.success else None

        return (
            record.question_id,
            homework_id,
            user_id,
            question.order_index,
            question.question_text,
            solved.question_type.value,
            int(question.is_sub_question),
            question.parent_context,
            question.sub_question_label,
            question.question.page_number,
            question.original_language,
            json.dumps(question.classification.to_suggestions()),
            int(graph.graphable),
            graph.graphable_function,
            graph.graph_type.value if graph.graph_type else None,
            domain[0],
            domain[1],
            illustration.image_url if illustration else None,
            illustration.file_id if illustration else None,
        )

    @staticmethod
    def _solution_row(homework_id: str, record: QuestionRecord) -> tuple:
        solved = record.solved
        return (
            record.question_id,
            homework_id,
            solved.detected_subject,
            solved.detected_topic,
            solved.difficulty.value,
            solved.answer,
            json.dumps({"en": solved.solution_steps, "he": solved.solution_steps_he}, ensure_ascii=False),
            solved.tip,
            solved.tip_he,
            solved.key_insight,
            solved.key_insight_he,
            json.dumps({"en": solved.common_mistakes, "he": solved.common_mistakes_he}, ensure_ascii=False),
            solved.ai_confidence,
            solved.processing_notes,
        )
