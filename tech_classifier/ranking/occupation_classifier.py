import re
import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..config import ClassificationThresholds
from .composite_scorer import HARM_RANK, HARM_RANK_DIGITAL, HARM_RANK_NO_TEL

logger = logging.getLogger(__name__)

DIGITAL = 'Digital'
HIGH_TECH = 'High-Tech'

_NOC_TITLE_PATTERN = re.compile(r'^\s*(\d+)\s*[-:]?\s*(.+?)\s*$')


def split_noc_title(title) -> Tuple[Optional[str], Optional[str]]:
    """
    Splits a crosswalk title such as ``"2173 Software engineers and designers"``
    into its NOC code and occupation name. Titles without a leading code are
    returned as ``(None, title)``.
    """
    if title is None or (isinstance(title, float) and np.isnan(title)):
        return None, None
    match = _NOC_TITLE_PATTERN.match(str(title))
    if not match:
        return None, str(title).strip()
    return match.group(1), match.group(2)


def add_noc_code_and_name(df: pd.DataFrame) -> pd.DataFrame:
    result = df.copy()
    parts = [split_noc_title(title) for title in result['noc_title']]
    result['noc_code'] = [code for code, _ in parts]
    result['noc_name'] = [name for _, name in parts]
    return result


def classify_occupations(scored: pd.DataFrame, thresholds: ClassificationThresholds) -> pd.DataFrame:
    """
    Labels occupations from their composite harmonic ranks.

    Rules, all strict comparisons:
        - ``tech`` is 1 when ``harm.rank`` < ``tech_cutoff``.
        - Tech occupations are "High-Tech", refined to "Digital" when
          ``harm.rank.digital`` < ``digital_cutoff``. Non-tech rows stay null.
        - ``tech_no_tel`` is 1 when ``harm.rank.no.tel`` < ``tech_cutoff``. It is a
          sensitivity flag and never feeds the primary labels.

    A null composite never qualifies, since NaN comparisons are false.
    """
    classified = scored.copy()

    is_tech = (classified[HARM_RANK] < thresholds.tech_cutoff).to_numpy()
    is_digital = is_tech & (classified[HARM_RANK_DIGITAL] < thresholds.digital_cutoff).to_numpy()

    classified['tech'] = is_tech.astype(int)

    labels = pd.Series([None] * len(classified), index=classified.index, dtype=object)
    labels[is_tech] = HIGH_TECH
    labels[is_digital] = DIGITAL
    classified['digital'] = labels

    classified['tech_no_tel'] = (classified[HARM_RANK_NO_TEL] < thresholds.tech_cutoff).astype(int)

    classified = add_noc_code_and_name(classified)
    classified = classified.sort_values([HARM_RANK, 'noc_title'], na_position='last', kind='mergesort').reset_index(drop=True)

    logger.info(
        f"Classified {len(classified)} occupations: {int(is_tech.sum())} tech "
        f"({int(is_digital.sum())} digital, {int(is_tech.sum() - is_digital.sum())} high-tech), "
        f"{int(classified['tech_no_tel'].sum())} tech without telecommunications "
        f"(tech_cutoff={thresholds.tech_cutoff}, digital_cutoff={thresholds.digital_cutoff})."
    )
    return classified
