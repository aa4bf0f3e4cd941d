"""Destination path resolution for organized files."""

from __future__ import annotations

import re
from typing import Optional

from batchorg.classification.models import ClassificationResult
from batchorg.config.models import CustomRule, OrganizationRules
from batchorg.ingestion.detectors import TypeDetector
from batchorg.ingestion.models import InputFile

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")
_MEBIBYTE = 1024 * 1024


def _parse_megabytes(value: str) -> Optional[int]:
    """Parse the leading integer of ``value``, ignoring any trailing text."""
    match = _LEADING_INTEGER.match(value)
    if match is None:
        return None
    return int(match.group(1))


class PathResolver:
    """Decide the single destination path for a file.

    Precedence, highest first: the first enabled custom rule that matches,
    the AI suggested folder when AI classification is enabled, then the
    structural ``year/month/type/size`` layout built from the enabled flags.
    """

    def __init__(self, detector: Optional[TypeDetector] = None) -> None:
        self._detector = detector or TypeDetector()

    def is_ignored(self, file: InputFile, rules: OrganizationRules) -> bool:
        """Return True when the file extension is listed in ``ignored_types``."""
        return bool(file.extension) and file.extension in rules.ignored_types

    def matching_rule(self, file: InputFile, rules: OrganizationRules) -> Optional[CustomRule]:
        """Return the first enabled custom rule matching ``file``, if any."""
        for rule in rules.custom_rules:
            if rule.enabled and self._matches(file, rule):
                return rule
        return None

    def resolve(
        self,
        file: InputFile,
        rules: OrganizationRules,
        classification: Optional[ClassificationResult] = None,
    ) -> str:
        """Compute the ``/``-separated destination path for ``file``.

        Args:
            file: File being organized.
            rules: Rule configuration for the batch.
            classification: Classification available for the file, if any.

        Returns:
            str: Destination path whose final segment is the file name.
        """
        rule = self.matching_rule(file, rules)
        if rule is not None:
            return self._join(rule.target_folder, file.name)

        if rules.ai_classification and classification is not None:
            return self._join(classification.suggested_folder, file.name)

        segments: list[str] = []
        if rules.organize_by_date:
            segments.append(f"{file.last_modified.year:04d}")
            segments.append(f"{file.last_modified.month:02d}")
        if rules.organize_by_type:
            segments.append(self._detector.file_type(file.name))
        if rules.organize_by_size:
            segments.append(self._detector.size_category(file.size_bytes))
        return self._join("/".join(segments), file.name)

    def _matches(self, file: InputFile, rule: CustomRule) -> bool:
        name = file.name.lower()
        if rule.condition == "extension":
            return name.endswith(rule.value.lower())
        if rule.condition == "name":
            return rule.value.lower() in name
        if rule.condition == "size":
            megabytes = _parse_megabytes(rule.value)
            return megabytes is not None and file.size_bytes > megabytes * _MEBIBYTE
        return False

    @staticmethod
    def _join(folder: str, name: str) -> str:
        folder = folder.strip().strip("/")
        return f"{folder}/{name}" if folder else name


__all__ = ["PathResolver"]
