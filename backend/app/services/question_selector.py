"""
Eclairum Backend — Practice Question Selection
================================================

What:  Picks which questions a user practises next.
How:   Pure function over already-loaded questions and the user's
       per-question answer counts; no database access.
Who:   QuestionService.select_questions_for_user.

Selection Rules:
    1. Questions the user never answered come first
    2. If there are at least `limit` of them, return a random `limit` of them
    3. Otherwise fill the remaining slots with the least-answered questions
    4. The final selection is shuffled
"""

import random
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from app.models.quiz import Question


def select_questions(
    questions: Sequence[Question],
    frequencies: Dict[UUID, int],
    limit: int,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """
    Args:
        questions:   candidate questions
        frequencies: question_id → times the user answered it (missing = 0)
        limit:       maximum number of questions to return
        rng:         source of randomness (module-level `random` by default)
    """
    rng = rng or random
    if limit <= 0 or not questions:
        return []

    unanswered = [q for q in questions if frequencies.get(q.id, 0) == 0]
    if len(unanswered) >= limit:
        return rng.sample(unanswered, limit)

    answered = sorted(
        (q for q in questions if frequencies.get(q.id, 0) > 0),
        key=lambda q: frequencies[q.id],
    )
    selected = unanswered + answered[: limit - len(unanswered)]
    rng.shuffle(selected)
    return selected
