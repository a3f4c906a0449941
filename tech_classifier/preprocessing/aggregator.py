import logging

import pandas as pd

from ..utils.data_validator import ValidationError, validate_columns
from ..utils.exceptions import SchemaError

logger = logging.getLogger(__name__)

GROUP_KEYS = ['noc_title', 'element_id', 'element_name', 'scale_id', 'scale_name']


def aggregate_scores(joined: pd.DataFrame) -> pd.DataFrame:
    """Averages joined rating values into one row per NOC title, element and scale."""
    try:
        validate_columns(joined, GROUP_KEYS + ['value'], 'joined ratings')
    except ValidationError as e:
        raise SchemaError('joined ratings', str(e)) from e

    # dropna=False keeps a null title as its own group; the ranker filters it
    aggregated = (
        joined.groupby(GROUP_KEYS, dropna=False, sort=True)['value']
        .mean()
        .reset_index()
    )

    logger.info(f"Aggregated {len(joined)} joined rows into {len(aggregated)} scores.")
    return aggregated
