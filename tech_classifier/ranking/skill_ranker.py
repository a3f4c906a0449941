import logging
from typing import Sequence

import numpy as np
import pandas as pd

from ..config import SkillSelection
from ..utils.data_validator import ValidationError, validate_columns
from ..utils.exceptions import SchemaError

logger = logging.getLogger(__name__)


def rank_column(skill_id: str) -> str:
    return f"{skill_id}.rank"


def build_skill_values(aggregated: pd.DataFrame, skills: Sequence[str], scale_ids: Sequence[str]) -> pd.DataFrame:
    """
    Reshapes aggregated scores into one row per NOC title and one column per skill.

    The value of a skill is the product of its scores on ``scale_ids``; with a
    single scale that is the score itself. A title lacking any of those scales
    for a skill gets a null value for it. Rows without a title are dropped.

    Returns:
        A DataFrame with a ``noc_title`` column followed by one column per skill,
        sorted by title.
    """
    try:
        validate_columns(aggregated, ['noc_title', 'element_id', 'scale_id', 'value'], 'aggregated scores')
    except ValidationError as e:
        raise SchemaError('aggregated scores', str(e)) from e

    skills = list(skills)
    scale_ids = list(scale_ids)

    null_titles = aggregated['noc_title'].isna()
    if null_titles.any():
        logger.warning(f"Dropping {int(null_titles.sum())} aggregated rows without a NOC title before ranking.")
    titled = aggregated[~null_titles]

    subset = titled[titled['element_id'].isin(skills) & titled['scale_id'].isin(scale_ids)]

    by_scale = (
        subset.groupby(['noc_title', 'element_id', 'scale_id'])['value']
        .mean()
        .unstack('scale_id')
        .reindex(columns=scale_ids)
    )
    skill_value = by_scale.prod(axis=1, min_count=len(scale_ids))

    titles = sorted(titled['noc_title'].unique())
    values = (
        skill_value.unstack('element_id')
        .reindex(index=titles, columns=skills)
        .astype(float)
    )
    values.index.name = 'noc_title'
    values.columns.name = None

    missing = [skill for skill in skills if values[skill].isna().all()]
    if missing:
        logger.warning(f"No occupation has a value for skills {missing} on scales {scale_ids}.")

    return values.reset_index()


def rank_skills(values: pd.DataFrame, skills: Sequence[str]) -> pd.DataFrame:
    """
    Adds a descending rank column for every skill.

    The highest value gets rank 1. Ties are broken by title order (rows are
    sorted by ``noc_title`` first), so ranks always run 1..N without gaps,
    where N is the number of occupations with a value for that skill.
    Occupations without a value get a null rank.
    """
    ranked = values.sort_values('noc_title', kind='mergesort').reset_index(drop=True)

    for skill in skills:
        column = ranked[skill]
        tied = column[column.notna() & column.duplicated(keep=False)]
        if not tied.empty:
            logger.debug(f"{skill}: {tied.nunique()} tied values across {len(tied)} occupations, broken by title.")

        ranked[rank_column(skill)] = column.rank(method='first', ascending=False, na_option='keep').astype('Int64')

    return ranked


def rank_occupations(aggregated: pd.DataFrame, selection: SkillSelection) -> pd.DataFrame:
    """Builds the per-skill values and ranks for the skills of interest."""
    skills = list(selection.skills_of_interest)
    values = build_skill_values(aggregated, skills, selection.rank_scale_ids)
    ranked = rank_skills(values, skills)

    counts = {skill: int(ranked[skill].notna().sum()) for skill in skills}
    logger.info(f"Ranked {len(ranked)} occupations on {len(skills)} skills (non-null counts: {counts}).")

    return ranked[['noc_title'] + skills + [rank_column(skill) for skill in skills]]


def rank_matrix(ranked: pd.DataFrame, skills: Sequence[str]) -> np.ndarray:
    """Returns the rank columns for ``skills`` as a float array with NaN for missing ranks."""
    columns = [rank_column(skill) for skill in skills]
    return ranked[columns].astype('Float64').to_numpy(dtype=float, na_value=np.nan)
