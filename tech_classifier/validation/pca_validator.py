"""
Unsupervised check of the skill selection.

The aggregated O*NET scores are turned into an occupation-by-skill matrix
(score = importance x level, as O*NET recommends for combining the two
scales), standardised, and decomposed with PCA. If the chosen tech skills
load together on a leading component, the selection reflects a real axis of
variation across occupations rather than an arbitrary pick.
"""
import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler

from ..config import PCAConfig
from ..utils.data_validator import ValidationError, validate_columns
from ..utils.exceptions import DecompositionError, SchemaError

logger = logging.getLogger(__name__)

_ZERO_VARIANCE_TOLERANCE = 1e-12


@dataclass
class PCAResult:
    loadings: pd.DataFrame                  # skills x components
    scores: pd.DataFrame                    # occupations x components
    explained_variance_ratio: pd.Series
    standardized: pd.DataFrame              # the matrix the components were fitted on


def component_names(n_components: int):
    return [f"PC{i}" for i in range(1, n_components + 1)]


def build_skill_labels(aggregated: pd.DataFrame, id_length: int) -> pd.Series:
    """Labels each row as the truncated element id followed by the element name."""
    return aggregated['element_id'].astype(str).str[:id_length] + ' ' + aggregated['element_name'].astype(str)


def build_score_matrix(aggregated: pd.DataFrame, pca_config: PCAConfig) -> pd.DataFrame:
    """
    Reshapes aggregated scores into an occupation x skill matrix of importance x level.

    Skills that no occupation has both scales for are dropped, then occupations
    still missing a score for any remaining skill are dropped. Nothing is imputed.
    """
    try:
        validate_columns(aggregated, ['noc_title', 'element_id', 'element_name', 'scale_id', 'value'], 'aggregated scores')
    except ValidationError as e:
        raise SchemaError('aggregated scores', str(e)) from e

    importance_id = pca_config.importance_scale_id
    level_id = pca_config.level_scale_id

    subset = aggregated[aggregated['scale_id'].isin([importance_id, level_id])].dropna(subset=['noc_title'])
    subset = subset.assign(skill=build_skill_labels(subset, pca_config.skill_id_length))

    # occupation x (skill, scale)
    wide = (
        subset.groupby(['noc_title', 'skill', 'scale_id'])['value']
        .mean()
        .unstack(['skill', 'scale_id'])
    )
    wide = wide.reindex(columns=pd.MultiIndex.from_product(
        [sorted(subset['skill'].unique()), [importance_id, level_id]], names=['skill', 'scale_id']
    ))

    importance = wide.xs(importance_id, axis=1, level='scale_id')
    level = wide.xs(level_id, axis=1, level='scale_id')
    matrix = importance * level

    empty_skills = matrix.columns[matrix.isna().all()].tolist()
    if empty_skills:
        logger.warning(f"Dropping {len(empty_skills)} skills without importance and level scores: {empty_skills}")
        matrix = matrix.drop(columns=empty_skills)

    incomplete = matrix.isna().any(axis=1)
    if incomplete.any():
        logger.warning(f"Dropping {int(incomplete.sum())} occupations with incomplete skill scores from PCA.")
        matrix = matrix[~incomplete]

    matrix.columns.name = 'skill'
    matrix.index.name = 'noc_title'
    logger.info(f"Built PCA score matrix: {matrix.shape[0]} occupations x {matrix.shape[1]} skills.")
    return matrix


def run_pca(matrix: pd.DataFrame, pca_config: PCAConfig) -> PCAResult:
    """
    Standardises the score matrix and extracts the leading principal components.

    Loadings are the unit eigenvectors (``components_``) and scores are the
    standardised matrix projected onto them, so both share one sign convention.

    Raises:
        DecompositionError: If the matrix is too small, has a constant column or
            its rank is below the number of requested components.
    """
    n_components = pca_config.n_components
    n_occupations, n_skills = matrix.shape

    if n_components > min(n_occupations, n_skills):
        raise DecompositionError(
            f"Cannot extract {n_components} components from a {n_occupations} x {n_skills} matrix"
        )

    spread = matrix.std(axis=0, ddof=0)
    constant = spread[spread <= _ZERO_VARIANCE_TOLERANCE].index.tolist()
    if constant:
        raise DecompositionError(f"Skills with zero variance cannot be standardised: {constant}")

    standardized = pd.DataFrame(
        StandardScaler().fit_transform(matrix.to_numpy(dtype=float)),
        index=matrix.index,
        columns=matrix.columns,
    )

    rank = np.linalg.matrix_rank(standardized.to_numpy())
    if rank < n_components:
        raise DecompositionError(f"Score matrix has rank {rank}, fewer than the {n_components} requested components")

    pca = PCA(n_components=n_components, svd_solver='full')
    scores = pca.fit_transform(standardized.to_numpy())

    names = component_names(n_components)
    loadings = pd.DataFrame(pca.components_.T, index=matrix.columns, columns=names)
    loadings.index.name = 'skill'
    scores = pd.DataFrame(scores, index=matrix.index, columns=names)
    explained = pd.Series(pca.explained_variance_ratio_, index=names, name='explained_variance_ratio')

    logger.info(
        "PCA explained variance: "
        + ", ".join(f"{name}={ratio:.3f}" for name, ratio in explained.items())
    )
    return PCAResult(loadings=loadings, scores=scores, explained_variance_ratio=explained, standardized=standardized)


def sorted_loadings(result: PCAResult, component: int = 1, ascending: bool = False) -> pd.DataFrame:
    """Returns the loading table ordered by one component (1-based)."""
    column = f"PC{component}"
    if column not in result.loadings.columns:
        raise DecompositionError(f"Component {component} was not retained (have {list(result.loadings.columns)})")
    return result.loadings.sort_values(column, ascending=ascending, kind='mergesort')


def validate_skill_selection(aggregated: pd.DataFrame, pca_config: PCAConfig) -> PCAResult:
    matrix = build_score_matrix(aggregated, pca_config)
    return run_pca(matrix, pca_config)
