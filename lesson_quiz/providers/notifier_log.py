from __future__ import annotations

import logging

from lesson_quiz.providers.base import BonusNotifier
from lesson_quiz.session import BonusAward

log = logging.getLogger("lesson_quiz.bonus")


class LogBonusNotifier(BonusNotifier):
    """Log each award. The API reads the acknowledgment from SubmitResult.award."""

    def notify(self, award: BonusAward) -> None:
        log.info("%s earned %d bonus point(s) playing a quiz by %s", award.viewer, award.points, award.author)
