import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .config import AppConfig, get_config
from .preprocessing.aggregator import aggregate_scores
from .preprocessing.crosswalk_joiner import join_crosswalk, prepare_crosswalk
from .preprocessing.schema_unifier import unify_rating_tables
from .ranking.composite_scorer import add_composite_scores
from .ranking.occupation_classifier import DIGITAL, HIGH_TECH, classify_occupations
from .ranking.skill_ranker import rank_occupations
from .schemas import LabelCounts, RunSummary, StageCounts
from .utils.etl import load_crosswalk, load_rating_table, write_outputs
from .utils.exceptions import PipelineError
from .validation.pca_validator import PCAResult, validate_skill_selection

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    aggregated: pd.DataFrame
    classification: pd.DataFrame
    pca: PCAResult
    summary: RunSummary


def run_pipeline(knowledge: pd.DataFrame, skills: pd.DataFrame, activities: pd.DataFrame,
                 crosswalk: pd.DataFrame, config: Optional[AppConfig] = None) -> PipelineResult:
    """
    Runs unification, the crosswalk join and aggregation, then the ranking and
    classification branch and the PCA branch on the same aggregated scores.

    Raises:
        PipelineError: On any fatal schema, configuration or decomposition error.
    """
    try:
        app_config = (config or get_config()).validate()
        selection = app_config.skill_selection

        ratings = unify_rating_tables(knowledge, skills, activities)
        prepared_crosswalk = prepare_crosswalk(crosswalk)
        join_result = join_crosswalk(ratings, prepared_crosswalk)
        aggregated = aggregate_scores(join_result.joined)

        ranked = rank_occupations(aggregated, selection)
        scored = add_composite_scores(ranked, selection)
        classification = classify_occupations(scored, app_config.thresholds)

        pca_result = validate_skill_selection(aggregated, app_config.pca_config)

        summary = RunSummary(
            stage_counts=StageCounts(
                rating_rows=len(ratings),
                crosswalk_rows=len(prepared_crosswalk),
                joined_rows=len(join_result.joined),
                aggregated_rows=len(aggregated),
                occupations_ranked=len(classification),
                null_title_rows_dropped=int(aggregated['noc_title'].isna().sum()),
                pca_occupations=len(pca_result.scores),
            ),
            label_counts=LabelCounts(
                tech=int(classification['tech'].sum()),
                digital=int((classification['digital'] == DIGITAL).sum()),
                high_tech=int((classification['digital'] == HIGH_TECH).sum()),
                tech_no_tel=int(classification['tech_no_tel'].sum()),
            ),
            unmatched_onet_codes=join_result.unmatched_codes,
            tech_cutoff=app_config.thresholds.tech_cutoff,
            digital_cutoff=app_config.thresholds.digital_cutoff,
            explained_variance_ratio={k: float(v) for k, v in pca_result.explained_variance_ratio.items()},
        )

        return PipelineResult(
            aggregated=aggregated,
            classification=classification,
            pca=pca_result,
            summary=summary,
        )

    except PipelineError as e:
        logger.error(f"A pipeline failure occurred: {e}", exc_info=True)
        raise
    except Exception as e:
        logger.error(f"An unexpected and unhandled error occurred in the pipeline: {e}", exc_info=True)
        raise PipelineError("An unexpected pipeline failure occurred") from e


def run_from_files(knowledge_path, skills_path, activities_path, crosswalk_path,
                   config: Optional[AppConfig] = None, write: bool = True) -> PipelineResult:
    """Loads the four input files, runs the pipeline and, if ``write`` is set, saves the outputs."""
    app_config = config or get_config()

    result = run_pipeline(
        knowledge=load_rating_table(knowledge_path),
        skills=load_rating_table(skills_path),
        activities=load_rating_table(activities_path),
        crosswalk=load_crosswalk(crosswalk_path),
        config=app_config,
    )

    if write:
        write_outputs(
            result,
            app_config.output_config,
            sort_component=app_config.pca_config.sort_component,
            sort_ascending=app_config.pca_config.sort_ascending,
        )
    return result
