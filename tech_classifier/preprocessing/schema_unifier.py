import logging

import pandas as pd

from ..utils.data_validator import ValidationError, validate_column_count, validate_not_null, validate_numeric
from ..utils.exceptions import SchemaError

logger = logging.getLogger(__name__)

# Positional layout shared by the O*NET Knowledge, Skills and Work Activities exports
RATING_COLUMNS = [
    'onet_code',
    'onet_title',
    'element_id',
    'element_name',
    'scale_id',
    'scale_name',
    'value',
    'n',
    'standard_error',
    'lower_ci_bound',
    'upper_ci_bound',
    'recommend_suppress',
    'not_relevant',
    'date',
    'domain_source',
]

DROPPED_COLUMNS = ['n', 'lower_ci_bound', 'upper_ci_bound', 'date', 'domain_source']

UNIFIED_COLUMNS = [c for c in RATING_COLUMNS if c not in DROPPED_COLUMNS] + ['source']


def unify_rating_tables(knowledge: pd.DataFrame, skills: pd.DataFrame, activities: pd.DataFrame) -> pd.DataFrame:
    """
    Stacks the three rating tables into one table with canonical column names.

    The inputs only need to agree on column positions; their headers are
    replaced positionally. Metadata columns that nothing downstream reads are
    dropped and a ``source`` column records the originating table.

    Raises:
        SchemaError: If the column counts differ, values are not numeric, or an
            element or scale id is missing.
    """
    tables = {'knowledge': knowledge, 'skills': skills, 'work_activities': activities}

    counts = {name: df.shape[1] for name, df in tables.items()}
    if len(set(counts.values())) != 1:
        raise SchemaError('rating tables', f"column counts differ across inputs: {counts}")

    frames = []
    for name, df in tables.items():
        try:
            validate_column_count(df, len(RATING_COLUMNS), name)
        except ValidationError as e:
            raise SchemaError(name, str(e)) from e

        renamed = df.copy()
        renamed.columns = RATING_COLUMNS
        renamed['source'] = name
        frames.append(renamed)
        logger.debug(f"{name}: {len(renamed)} rating rows")

    unified = pd.concat(frames, ignore_index=True).drop(columns=DROPPED_COLUMNS)

    try:
        unified['value'] = validate_numeric(unified, 'value', 'ratings')
        validate_not_null(unified, ['element_id', 'scale_id'], 'ratings')
    except ValidationError as e:
        raise SchemaError('ratings', str(e)) from e

    for column in ('onet_code', 'element_id', 'scale_id'):
        unified[column] = unified[column].astype(str).str.strip()

    logger.info(f"Unified {len(unified)} rating rows from {len(frames)} tables.")
    return unified[UNIFIED_COLUMNS]
