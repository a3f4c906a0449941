from typing import Iterable

import pandas as pd

class ValidationError(ValueError):
    """Custom exception for data validation errors."""
    pass

def validate_columns(df: pd.DataFrame, required: Iterable[str], table_name: str):
    """
    Validates that the required columns are present in a table.

    Args:
        df: The table to check.
        required: Column names that must exist.
        table_name: Name used in the error message.

    Raises:
        ValidationError: If any required column is missing.
    """
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise ValidationError(f"{table_name} is missing required columns: {', '.join(missing)}")

def validate_column_count(df: pd.DataFrame, expected: int, table_name: str):
    if df.shape[1] != expected:
        raise ValidationError(f"{table_name} has {df.shape[1]} columns, expected {expected}")

def validate_numeric(df: pd.DataFrame, column: str, table_name: str) -> pd.Series:
    """
    Coerces a column to float and rejects values that are not numbers.

    Missing values stay missing; anything that is present but cannot be
    parsed raises.
    """
    coerced = pd.to_numeric(df[column], errors='coerce')
    bad = coerced.isna() & df[column].notna()
    if bad.any():
        examples = df.loc[bad, column].astype(str).unique()[:3]
        raise ValidationError(f"{table_name}.{column} has non-numeric values, e.g. {list(examples)}")
    return coerced.astype(float)

def validate_not_null(df: pd.DataFrame, columns: Iterable[str], table_name: str):
    for column in columns:
        null_count = int(df[column].isna().sum())
        if null_count:
            raise ValidationError(f"{table_name}.{column} has {null_count} null values")
