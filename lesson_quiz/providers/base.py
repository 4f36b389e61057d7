from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lesson_quiz.models import SummaryContext
    from lesson_quiz.session import BonusAward


class ScoreSubmitter(ABC):
    @abstractmethod
    async def submit(self, score: int, question_count: int, summary: SummaryContext) -> bool:
        ...

    @abstractmethod
    def name(self) -> str:
        ...


class BonusNotifier(ABC):
    @abstractmethod
    def notify(self, award: BonusAward) -> None:
        ...

    def __call__(self, award: BonusAward) -> None:
        self.notify(award)
