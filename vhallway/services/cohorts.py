from __future__ import annotations

import random
from typing import List, Optional

from vhallway.services.errors import InsufficientParticipants


def partition(
    n_participants: int,
    cohort_size: int,
    rng: Optional[random.Random] = None,
) -> List[List[int]]:
    """Randomly split ``range(n_participants)`` into cohorts of ``cohort_size``.

    The last cohort is shorter when ``n_participants`` is not a multiple of
    ``cohort_size``. Every call draws a fresh shuffle so nobody can predict
    or steer who they end up with.
    """
    if cohort_size <= 0 or cohort_size > n_participants:
        raise InsufficientParticipants(n_participants, cohort_size)
    rng = rng or random.SystemRandom()
    order = list(range(n_participants))
    rng.shuffle(order)
    return [order[start:start + cohort_size] for start in range(0, n_participants, cohort_size)]
