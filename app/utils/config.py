"""Centralized configuration loading utilities."""

import yaml
import pathlib
import logging
from datetime import date
from typing import Dict, Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from api.exceptions import ConfigError
from interface import BucketKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = pathlib.Path(__file__).parent / "config.yaml"


class PlotTheme(BaseModel):
    """Explicit plotting theme handed to every renderer."""
    template: str = "plotly_white"
    width: int = Field(default=900, gt=0)
    height: int = Field(default=500, gt=0)
    font_family: str = "Arial"
    line_color: str = "#1f77b4"
    ribbon_color: str = "rgba(31, 119, 180, 0.2)"
    reference_color: str = "#d62728"
    date_format: str = "%Y-%m-%d"
    dpi: int = Field(default=150, gt=0)


class MutationReportSettings(BaseModel):
    """Settings for the mutation surveillance report."""
    metadata_path: str = "data/metadata.tsv"
    mutations_path: str = "data/mutations.tsv"
    bucket: BucketKind = BucketKind.WEEK
    top_lineages: int = Field(default=8, ge=1)
    top_mutations: int = Field(default=10, ge=1)
    highlight_mutation: Optional[str] = "S:N501Y"
    output_dir: str = "figures"


class ReproductionSettings(BaseModel):
    """Settings for the reproduction number estimate."""
    page_url: str = "https://covid19.ssi.dk/overvagningsdata/download-fil-med-overvaagningdata"
    link_pattern: str = r'href="(https://files\.ssi\.dk/covid19/overvagning/data/[^"]*?-\d{8}[^"]*)"'
    date_pattern: str = r"-(\d{8})"
    date_format: str = "%Y%m%d"
    member: str = "Test_pos_over_time.csv"
    summary_rows: int = Field(default=2, ge=0)
    lower_bound: date = date(2020, 4, 1)
    trailing_margin_days: int = Field(default=3, ge=0)
    test_exponent: float = Field(default=0.7, ge=0)
    smoothing: float = Field(default=20.0, gt=0)
    generation_interval_mean: float = Field(default=4.7, gt=0)
    generation_interval_sd: float = Field(default=2.9, gt=0)
    confidence_level: float = Field(default=0.95, gt=0, lt=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    retries: int = Field(default=0, ge=0)
    backoff_factor: float = Field(default=0.5, ge=0)
    output_dir: str = "figures"


class AppConfig(BaseModel):
    """Validated contents of config.yaml."""
    mutation_report: MutationReportSettings = MutationReportSettings()
    reproduction: ReproductionSettings = ReproductionSettings()
    theme: PlotTheme = PlotTheme()


def load_config(config_path: Optional[Union[str, pathlib.Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from config.yaml.

    Args:
        config_path: Optional path overriding the bundled config.yaml

    Returns:
        Dictionary containing the configuration
    """
    config_path = pathlib.Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, 'r') as file:
            config = yaml.safe_load(file) or {}
            logger.info(f"Loaded configuration from {config_path}")
            return config
    except FileNotFoundError:
        logger.error(f"Configuration file not found at {config_path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML configuration: {e}")
        raise


def parse_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Validate a raw configuration mapping.

    Raises:
        ConfigError: If any section holds an invalid value
    """
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise ConfigError(f"Invalid configuration: {e}") from e


def get_app_config(config_path: Optional[Union[str, pathlib.Path]] = None) -> AppConfig:
    """Load and validate the application configuration."""
    return parse_config(load_config(config_path))


def resolve_path(path: Union[str, pathlib.Path], config_path: Optional[Union[str, pathlib.Path]] = None) -> pathlib.Path:
    """
    Resolve a configured input path.

    Relative paths are taken relative to the directory holding the config file,
    so the bundled config finds the bundled example tables. Output directories
    are not resolved here; they are relative to the working directory.
    """
    path = pathlib.Path(path)
    if path.is_absolute():
        return path
    base = pathlib.Path(config_path).parent if config_path else DEFAULT_CONFIG_PATH.parent
    return base / path
