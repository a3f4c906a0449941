import logging
from pathlib import Path

import pandas as pd

from ..config import OutputConfig
from ..validation.pca_validator import sorted_loadings
from .exceptions import SchemaError

logger = logging.getLogger(__name__)

_TAB_SUFFIXES = {'.txt', '.tsv'}
_EXCEL_SUFFIXES = {'.xlsx', '.xlsm', '.xls'}


def _read_table(path, table_name: str) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{table_name} file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in _TAB_SUFFIXES:
            df = pd.read_csv(path, sep='\t', dtype=str, keep_default_na=False, na_values=[''])
        elif suffix in _EXCEL_SUFFIXES:
            df = pd.read_excel(path, dtype=str, engine='openpyxl')
        else:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[''])
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise SchemaError(table_name, f"could not parse {path}: {e}") from e

    logger.info(f"Loaded {len(df)} rows x {df.shape[1]} columns from {path}")
    return df


def load_rating_table(path) -> pd.DataFrame:
    """Reads an O*NET rating export (tab-separated, CSV or Excel) with every column as text."""
    return _read_table(path, Path(path).stem)


def load_crosswalk(path) -> pd.DataFrame:
    return _read_table(path, 'crosswalk')


def write_outputs(result, output_config: OutputConfig, sort_component: int = 1, sort_ascending: bool = False) -> dict:
    """
    Writes the classification table, PCA tables and run summary.

    Returns:
        dict: Output name to written path.
    """
    output_dir = Path(output_config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        'classification': output_dir / output_config.classification_file,
        'loadings': output_dir / output_config.loadings_file,
        'scores': output_dir / output_config.scores_file,
        'summary': output_dir / output_config.summary_file,
    }

    result.classification.to_csv(paths['classification'], index=False)
    sorted_loadings(result.pca, sort_component, sort_ascending).to_csv(paths['loadings'])
    result.pca.scores.to_csv(paths['scores'])
    with open(paths['summary'], 'w', encoding='utf-8') as f:
        f.write(result.summary.model_dump_json(indent=2))

    for name, path in paths.items():
        logger.info(f"Saved {name} to {path}")
    return paths
