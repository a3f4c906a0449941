import logging
from typing import Sequence

import numpy as np
import pandas as pd

from ..config import SkillSelection
from .skill_ranker import rank_matrix

logger = logging.getLogger(__name__)

HARM_RANK = 'harm.rank'
HARM_RANK_DIGITAL = 'harm.rank.digital'
HARM_RANK_NO_TEL = 'harm.rank.no.tel'


def harmonic_mean(values, axis: int = -1):
    """
    Harmonic mean n / sum(1 / v) along ``axis``.

    A NaN anywhere along the axis makes the result NaN for that slice.

    Raises:
        ValueError: If any present value is zero or negative.
    """
    values = np.asarray(values, dtype=float)
    present = values[~np.isnan(values)]
    if (present <= 0).any():
        raise ValueError("Harmonic mean is only defined for positive values")
    return values.shape[axis] / np.sum(1.0 / values, axis=axis)


def harmonic_rank(ranks, axis: int = -1):
    # Ranks start at 1, so rank + 1 is always positive
    return harmonic_mean(np.asarray(ranks, dtype=float) + 1, axis=axis)


def _composite(ranked: pd.DataFrame, skills: Sequence[str]) -> np.ndarray:
    return harmonic_rank(rank_matrix(ranked, skills), axis=1)


def add_composite_scores(ranked: pd.DataFrame, selection: SkillSelection) -> pd.DataFrame:
    """
    Adds the three harmonic-rank composites to a ranked occupation table.

    ``harm.rank`` covers all skills of interest, ``harm.rank.digital`` the
    digital subset and ``harm.rank.no.tel`` the subset without
    telecommunications. An occupation missing a rank in a subset gets a null
    composite for that subset only.
    """
    scored = ranked.copy()
    scored[HARM_RANK] = _composite(ranked, selection.skills_of_interest)
    scored[HARM_RANK_DIGITAL] = _composite(ranked, selection.digital_skills)
    scored[HARM_RANK_NO_TEL] = _composite(ranked, selection.no_tel_skills)

    undefined = int(scored[HARM_RANK].isna().sum())
    if undefined:
        logger.warning(f"{undefined} occupations have an undefined {HARM_RANK} because of missing ranks.")

    logger.info(f"Computed composite harmonic ranks for {len(scored)} occupations.")
    return scored
