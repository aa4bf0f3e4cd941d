"""Configuration models describing batchorg settings."""

from __future__ import annotations

import re
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


class BatchorgBaseModel(BaseModel):
    """Shared configuration for batchorg Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class CamelTolerantModel(BatchorgBaseModel):
    """Base model that also accepts camelCase keys.

    Rule configurations exported by the web client use camelCase field names
    (``organizeByType``, ``targetFolder``); they are normalised to the
    snake_case field names before validation.
    """

    @model_validator(mode="before")
    @classmethod
    def _normalise_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                _snake_case(key) if isinstance(key, str) else key: value
                for key, value in data.items()
            }
        return data


class LLMSettings(BatchorgBaseModel):
    """Language-model configuration options.

    Attributes:
        provider: LiteLLM provider prefix for the external service.
        model: Model used to classify documents from extracted text.
        vision_model: Model used to classify images from inline content.
        temperature: Sampling temperature for classification calls.
        max_tokens: Maximum number of tokens in document responses.
        vision_max_tokens: Maximum number of tokens in image responses.
        api_key: Credential for the hosted provider. Falls back to
            ``OPENAI_API_KEY`` when omitted.
        api_base_url: Optional base URL for self-hosted or proxy endpoints.
    """

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o"
    temperature: float = 0.1
    max_tokens: int = 500
    vision_max_tokens: int = 300
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None


class ClassificationOptions(BatchorgBaseModel):
    """Options governing AI classification requests.

    Attributes:
        group_size: Number of files classified concurrently per group.
        group_delay_seconds: Pause inserted between consecutive groups.
        min_text_length: Extracted text shorter than this is not classified.
        prompt_text_limit: Characters of extracted text embedded in prompts.
        preview_limit: Characters of extracted text kept for previews.
        high_confidence_threshold: Confidence above which a classification
            counts as high confidence in summaries.
    """

    group_size: int = Field(default=3, ge=1)
    group_delay_seconds: float = Field(default=1.0, ge=0)
    min_text_length: int = 50
    prompt_text_limit: int = 2_000
    preview_limit: int = 1_000
    high_confidence_threshold: float = 0.8


class CustomRule(CamelTolerantModel):
    """User-defined rule that routes matching files to a target folder.

    Attributes:
        id: Stable identifier for the rule.
        name: Human-readable label.
        condition: Which file attribute the rule inspects.
        value: Extension suffix, name fragment, or size threshold in megabytes.
        target_folder: Folder the matching files are placed in.
        enabled: Disabled rules are skipped during evaluation.
    """

    id: str = ""
    name: str = ""
    condition: Literal["extension", "name", "size"] = "extension"
    value: str
    target_folder: str
    enabled: bool = True


class OrganizationRules(CamelTolerantModel):
    """Rule configuration applied to every organize batch.

    Attributes:
        organize_by_type: Append a file-type segment to structural paths.
        organize_by_size: Append a size-bucket segment to structural paths.
        organize_by_date: Append year/month segments derived from last-modified.
        detect_duplicates: Hash content and flag repeated files.
        ai_classification: Classify files and prefer suggested folders.
        custom_rules: Ordered rules; the first enabled match wins.
        ignored_types: Extensions (lower-case, leading dot) dropped from batches.
    """

    organize_by_type: bool = True
    organize_by_size: bool = True
    organize_by_date: bool = True
    detect_duplicates: bool = True
    ai_classification: bool = False
    custom_rules: List[CustomRule] = Field(default_factory=list)
    ignored_types: List[str] = Field(default_factory=list)

    @field_validator("ignored_types")
    @classmethod
    def _normalise_ignored_types(cls, values: List[str]) -> List[str]:
        normalised: list[str] = []
        for value in values:
            cleaned = value.strip().lower()
            if not cleaned:
                continue
            if not cleaned.startswith("."):
                cleaned = f".{cleaned}"
            if cleaned not in normalised:
                normalised.append(cleaned)
        return normalised


class ProcessingOptions(BatchorgBaseModel):
    """Options governing how input batches are collected from disk.

    Attributes:
        recurse_directories: Whether to recurse into subdirectories.
        process_hidden_files: Whether hidden files should be included.
        follow_symlinks: Whether to traverse symbolic links.
        max_file_size_mb: Files above this size are skipped; 0 disables the limit.
    """

    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: int = 100


class LoggingSettings(BatchorgBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(BatchorgBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        history_limit: Number of batch snapshots retained for undo.
        archive_name: Default file name for generated archives.
        debug: Whether unexpected errors include diagnostic details.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = Field(default=10, ge=1)
    archive_name: str = "organized-files.zip"
    debug: bool = False


class BatchorgConfig(BatchorgBaseModel):
    """Top-level configuration struct for batchorg.

    Attributes:
        llm: Language model settings.
        classification: Classification request settings.
        rules: Organization rules applied to batches.
        processing: Batch collection settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    classification: ClassificationOptions = Field(default_factory=ClassificationOptions)
    rules: OrganizationRules = Field(default_factory=OrganizationRules)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "BatchorgBaseModel",
    "CamelTolerantModel",
    "LLMSettings",
    "ClassificationOptions",
    "CustomRule",
    "OrganizationRules",
    "ProcessingOptions",
    "LoggingSettings",
    "CLIOptions",
    "BatchorgConfig",
]
