"""
Routing of classified questions into processing strategies.
"""
from dataclasses import dataclass, field
from typing import List, Sequence, TypeVar

from models.homework_models import ClassifiedQuestion, QuestionComplexity

T = TypeVar("T")


@dataclass
class ProcessingGroups:
    """Disjoint processing queues."""
    batchable: List[ClassifiedQuestion] = field(default_factory=list)
    standard: List[ClassifiedQuestion] = field(default_factory=list)
    complex: List[ClassifiedQuestion] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.batchable) + len(self.standard) + len(self.complex)


def group_by_processing_strategy(questions: Sequence[ClassifiedQuestion]) -> ProcessingGroups:
    """
    Partition questions by how they should be solved.

    Batch-eligible questions go to ``batchable``; of the rest, complex ones go
    to ``complex`` and everything else to ``standard``.
    """
    groups = ProcessingGroups()

    for question in questions:
        if question.classification.can_batch_process:
            groups.batchable.append(question)
        elif question.classification.complexity == QuestionComplexity.COMPLEX:
            groups.complex.append(question)
        else:
            groups.standard.append(question)

    return groups


def create_batches(questions: Sequence[T], max_batch_size: int = 5) -> List[List[T]]:
    """Group consecutive items into chunks of at most ``max_batch_size``."""
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be at least 1, got {max_batch_size}")

    return [
        list(questions[i:i + max_batch_size])
        for i in range(0, len(questions), max_batch_size)
    ]
