# src/sql_doclint/config.py

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict

from sql_doclint.classify.dialects import Dialect, parse_dialect
from sql_doclint.parsers.markdown_parser import DEFAULT_TOC_END, DEFAULT_TOC_START
from sql_doclint.validation.features import default_registry

logger = logging.getLogger(__name__)

ReportFormat = Literal["text", "json", "table"]

DEFAULT_SQL_LANGUAGES = (
    "sql",
    "mysql",
    "postgresql",
    "postgres",
    "pgsql",
    "plpgsql",
    "psql",
    "tsql",
    "mssql",
    "sqlserver",
    "plsql",
    "oracle",
)


@dataclass(frozen=True)
class LinterConfig:
    """Configuration for a lint run.

    Immutable. Explicit. No magic defaults from environment.
    """

    document: str = "README.md"
    sql_languages: tuple[str, ...] = DEFAULT_SQL_LANGUAGES
    include_untagged: bool = False
    dialect: Dialect | None = None  # Overrides classification when set
    use_heading_hints: bool = True
    allow_features: tuple[str, ...] = ()  # Accepted in every dialect
    toc_start_marker: str = DEFAULT_TOC_START
    toc_end_marker: str = DEFAULT_TOC_END
    toc_min_level: int = 2
    toc_max_level: int = 3
    insert_toc_if_missing: bool = False
    write_toc: bool = False
    report_format: ReportFormat = "text"

    def __post_init__(self) -> None:
        if not 1 <= self.toc_min_level <= 6:
            raise ValueError("toc_min_level must be between 1 and 6")
        if not self.toc_min_level <= self.toc_max_level <= 6:
            raise ValueError("toc_max_level must be between toc_min_level and 6")
        if self.toc_start_marker == self.toc_end_marker:
            raise ValueError("toc_start_marker and toc_end_marker must differ")
        if self.allow_features:
            known = default_registry()
            for name in self.allow_features:
                try:
                    known.get(name)
                except KeyError:
                    raise ValueError(
                        f"Unknown feature in allow_features: {name}"
                    ) from None

    def with_overrides(self, **overrides: object) -> "LinterConfig":
        """Copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


class LinterSettings(BaseModel):
    """Schema of a YAML configuration file."""

    document: str = "README.md"
    sql_languages: list[str] = list(DEFAULT_SQL_LANGUAGES)
    include_untagged: bool = False
    dialect: str | None = None
    use_heading_hints: bool = True
    allow_features: list[str] = []
    toc_start_marker: str = DEFAULT_TOC_START
    toc_end_marker: str = DEFAULT_TOC_END
    toc_min_level: int = 2
    toc_max_level: int = 3
    insert_toc_if_missing: bool = False
    write_toc: bool = False
    report_format: ReportFormat = "text"

    model_config = ConfigDict(extra="forbid")

    def to_config(self) -> LinterConfig:
        return LinterConfig(
            document=self.document,
            sql_languages=tuple(lang.lower() for lang in self.sql_languages),
            include_untagged=self.include_untagged,
            dialect=parse_dialect(self.dialect) if self.dialect else None,
            use_heading_hints=self.use_heading_hints,
            allow_features=tuple(self.allow_features),
            toc_start_marker=self.toc_start_marker,
            toc_end_marker=self.toc_end_marker,
            toc_min_level=self.toc_min_level,
            toc_max_level=self.toc_max_level,
            insert_toc_if_missing=self.insert_toc_if_missing,
            write_toc=self.write_toc,
            report_format=self.report_format,
        )


def load_config(path: str | Path) -> LinterConfig:
    """Load a LinterConfig from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file has unknown or mistyped keys.
        ValueError: If the file is not a YAML mapping with string keys, or a
            value is out of range or names an unknown dialect.
    """
    logger.info("Loading configuration from %s", path)
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f"Configuration file {path} is not valid YAML: {exc}"
            ) from exc
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    bad_keys = [key for key in data if not isinstance(key, str)]
    if bad_keys:
        raise ValueError(
            f"Configuration file {path} has non-string keys: {bad_keys!r}"
        )
    return LinterSettings(**data).to_config()
