import os
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

COMPUTERS_AND_ELECTRONICS = '2.C.3.a'
ENGINEERING_AND_TECHNOLOGY = '2.C.3.b'
TELECOMMUNICATIONS = '2.C.9.a'
TECHNOLOGY_DESIGN = '2.B.3.b'
PROGRAMMING = '2.B.3.e'
WORKING_WITH_COMPUTERS = '4.A.3.b.1'


@dataclass
class SkillSelection:
    skills_of_interest: Tuple[str, ...] = (
        COMPUTERS_AND_ELECTRONICS,
        ENGINEERING_AND_TECHNOLOGY,
        TELECOMMUNICATIONS,
        TECHNOLOGY_DESIGN,
        PROGRAMMING,
        WORKING_WITH_COMPUTERS,
    )
    # Design and engineering knowledge separate "High-Tech" from "Digital"
    digital_skills: Tuple[str, ...] = (
        COMPUTERS_AND_ELECTRONICS,
        TELECOMMUNICATIONS,
        PROGRAMMING,
        WORKING_WITH_COMPUTERS,
    )
    no_tel_skills: Tuple[str, ...] = (
        COMPUTERS_AND_ELECTRONICS,
        ENGINEERING_AND_TECHNOLOGY,
        TECHNOLOGY_DESIGN,
        PROGRAMMING,
        WORKING_WITH_COMPUTERS,
    )
    # Scale values multiplied into the per-skill ranking value
    rank_scale_ids: Tuple[str, ...] = ('LV',)


@dataclass
class ClassificationThresholds:
    tech_cutoff: float = 15.0
    digital_cutoff: float = 10.0


@dataclass
class PCAConfig:
    n_components: int = 5
    importance_scale_id: str = 'IM'
    level_scale_id: str = 'LV'
    skill_id_length: int = 7
    sort_component: int = 1  # 1-based, matches the PC1..PCn column names
    sort_ascending: bool = False


@dataclass
class OutputConfig:
    output_dir: str = 'output'
    classification_file: str = 'tech_occupations.csv'
    loadings_file: str = 'pca_loadings.csv'
    scores_file: str = 'pca_scores.csv'
    summary_file: str = 'run_summary.json'


@dataclass
class AppConfig:
    skill_selection: SkillSelection = field(default_factory=SkillSelection)
    thresholds: ClassificationThresholds = field(default_factory=ClassificationThresholds)
    pca_config: PCAConfig = field(default_factory=PCAConfig)
    output_config: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> 'AppConfig':
        """
        Checks the configuration for internal consistency.

        Raises:
            ConfigurationError: If the skill lists, cutoffs or PCA settings are unusable.
        """
        selection = self.skill_selection
        skills = list(selection.skills_of_interest)
        if len(skills) != 6 or len(set(skills)) != 6:
            raise ConfigurationError(f"Exactly 6 unique skills of interest are required, got {skills}")

        for name, subset in (('digital_skills', selection.digital_skills),
                             ('no_tel_skills', selection.no_tel_skills)):
            if not subset:
                raise ConfigurationError(f"'{name}' must not be empty")
            unknown = sorted(set(subset) - set(skills))
            if unknown:
                raise ConfigurationError(f"'{name}' contains skills outside the skills of interest: {unknown}")

        if not selection.rank_scale_ids:
            raise ConfigurationError("At least one scale id is required for ranking")

        if self.thresholds.tech_cutoff <= 0 or self.thresholds.digital_cutoff <= 0:
            raise ConfigurationError("Cutoffs must be positive")

        if self.pca_config.n_components < 1:
            raise ConfigurationError("PCA needs at least one component")
        if not 1 <= self.pca_config.sort_component <= self.pca_config.n_components:
            raise ConfigurationError(
                f"sort_component {self.pca_config.sort_component} is outside 1..{self.pca_config.n_components}"
            )
        return self


_TUPLE_FIELDS = {'skills_of_interest', 'digital_skills', 'no_tel_skills', 'rank_scale_ids'}

_ENV_OVERRIDES = {
    'TECH_CUTOFF': ('thresholds', 'tech_cutoff', float),
    'DIGITAL_CUTOFF': ('thresholds', 'digital_cutoff', float),
    'PCA_COMPONENTS': ('pca_config', 'n_components', int),
    'OUTPUT_DIR': ('output_config', 'output_dir', str),
}


def _apply_section(section, values: Dict[str, Any], section_name: str):
    known = {f.name for f in fields(section)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{section_name}': {sorted(unknown)}")
    cleaned = {k: tuple(v) if k in _TUPLE_FIELDS else v for k, v in values.items()}
    return replace(section, **cleaned)


def _load_yaml(config: AppConfig, config_path: Path) -> AppConfig:
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    sections = {f.name for f in fields(config)}
    unknown = set(data) - sections
    if unknown:
        raise ConfigurationError(f"Unknown config sections: {sorted(unknown)}")

    updates = {name: _apply_section(getattr(config, name), values or {}, name) for name, values in data.items()}
    logger.info(f"Loaded configuration from {config_path}")
    return replace(config, **updates)


def _apply_env(config: AppConfig) -> AppConfig:
    for env_name, (section_name, attr, cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == '':
            continue
        try:
            value = cast(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e
        section = replace(getattr(config, section_name), **{attr: value})
        config = replace(config, **{section_name: section})
        logger.debug(f"{env_name} overrides {section_name}.{attr}={value!r}")
    return config


def get_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Builds the application configuration.

    Defaults are overlaid with a YAML file (``config_path`` or the
    ``TECH_CLASSIFIER_CONFIG`` environment variable) and then with
    environment variables, which may also come from a ``.env`` file.
    """
    load_dotenv()
    config = AppConfig()

    config_path = config_path or os.getenv('TECH_CLASSIFIER_CONFIG')
    if config_path:
        config = _load_yaml(config, Path(config_path))

    config = _apply_env(config)
    return config.validate()
