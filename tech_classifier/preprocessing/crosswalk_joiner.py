import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from ..utils.data_validator import ValidationError, validate_columns
from ..utils.exceptions import SchemaError

logger = logging.getLogger(__name__)

CROSSWALK_COLUMNS = ['onet_code', 'noc_title']


@dataclass
class JoinResult:
    joined: pd.DataFrame
    unmatched_codes: List[str] = field(default_factory=list)


def prepare_crosswalk(crosswalk: pd.DataFrame) -> pd.DataFrame:
    """
    Normalises a crosswalk to the (onet_code, noc_title) pair.

    The first two columns are taken positionally. Repeated pairs are collapsed
    so each mapping fans out exactly once.
    """
    if crosswalk.shape[1] < 2:
        raise SchemaError('crosswalk', f"expected at least 2 columns, got {crosswalk.shape[1]}")

    prepared = crosswalk.iloc[:, :2].copy()
    prepared.columns = CROSSWALK_COLUMNS
    prepared = prepared.dropna(subset=['onet_code'])
    prepared['onet_code'] = prepared['onet_code'].astype(str).str.strip()

    before = len(prepared)
    prepared = prepared.drop_duplicates().reset_index(drop=True)
    if len(prepared) < before:
        logger.info(f"Collapsed {before - len(prepared)} duplicate crosswalk pairs.")

    return prepared


def join_crosswalk(ratings: pd.DataFrame, crosswalk: pd.DataFrame) -> JoinResult:
    """
    Inner-joins unified ratings onto the crosswalk by O*NET code.

    Every rating is repeated once for each NOC title its code maps to. Ratings
    whose code has no mapping are dropped; their codes are returned so the
    loss is visible to the caller.
    """
    try:
        validate_columns(ratings, ['onet_code'], 'ratings')
    except ValidationError as e:
        raise SchemaError('ratings', str(e)) from e

    crosswalk = prepare_crosswalk(crosswalk)

    joined = ratings.merge(crosswalk, on='onet_code', how='inner', validate='many_to_many')

    unmatched = sorted(set(ratings['onet_code']) - set(crosswalk['onet_code']))
    if unmatched:
        dropped_rows = int(ratings['onet_code'].isin(unmatched).sum())
        logger.warning(
            f"{len(unmatched)} O*NET codes have no crosswalk match; dropping {dropped_rows} rating rows: {unmatched}"
        )

    logger.info(f"Joined {len(ratings)} rating rows to {len(joined)} rows across {joined['noc_title'].nunique()} NOC titles.")
    return JoinResult(joined=joined, unmatched_codes=unmatched)
