"""
Data Schemas for the Tech Occupation Classifier

The run summary is the one structured record the pipeline emits besides its
tables. It is written next to the output CSVs so a reviewer can see how much
data each stage kept, which O*NET codes fell out of the crosswalk join and
which cutoffs produced the labels.
"""
from typing import Dict, List
from pydantic import BaseModel, Field

class StageCounts(BaseModel):
    rating_rows: int
    crosswalk_rows: int
    joined_rows: int
    aggregated_rows: int
    occupations_ranked: int
    null_title_rows_dropped: int = 0
    pca_occupations: int = 0

class LabelCounts(BaseModel):
    tech: int
    digital: int
    high_tech: int
    tech_no_tel: int

class RunSummary(BaseModel):
    """Summary of one pipeline run."""
    stage_counts: StageCounts
    label_counts: LabelCounts
    unmatched_onet_codes: List[str] = Field(default_factory=list, description="O*NET codes dropped by the crosswalk join")
    tech_cutoff: float
    digital_cutoff: float
    explained_variance_ratio: Dict[str, float] = Field(default_factory=dict)
