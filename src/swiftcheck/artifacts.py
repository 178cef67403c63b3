"""
On-disk artifact store.

Attachments land under ``<artifact_dir>/<case_id>/<name>`` and a run
summary under ``<artifact_dir>/summary.json``.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from swiftcheck.models import Attachment
    from swiftcheck.runner import RunSummary

logger = structlog.get_logger(__name__)

_UNSAFE_RE = re.compile(r"[^\w\-_.]")


def safe_name(name: str) -> str:
    """
    Sanitize a case id or attachment name for use as a path component.

    Names that are already safe are returned unchanged. Rewritten names
    carry a short digest of the original (before the extension) so two
    ids never collapse onto the same path.
    """
    cleaned = _UNSAFE_RE.sub("_", name).strip(".") or "_"
    if cleaned == name:
        return cleaned
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
    stem, dot, suffix = cleaned.rpartition(".")
    if not dot:
        return f"{cleaned}-{digest}"
    return f"{stem}-{digest}.{suffix}"


class ArtifactStore:
    """Writes case attachments and run summaries to a directory."""

    def __init__(self, artifact_dir: str | Path) -> None:
        self._artifact_dir = Path(artifact_dir)
        self._log = logger.bind(component="artifact_store")

    @property
    def artifact_dir(self) -> Path:
        return self._artifact_dir

    def save(self, case_id: str, attachment: Attachment) -> Path:
        """Write one attachment and return its path."""
        case_dir = self._artifact_dir / safe_name(case_id)
        case_dir.mkdir(parents=True, exist_ok=True)
        path = case_dir / safe_name(attachment.name)
        path.write_bytes(attachment.content)
        self._log.debug("attachment_saved", case=case_id, path=str(path), size=len(attachment.content))
        return path

    def write_summary(self, summary: RunSummary) -> Path:
        """Write ``summary.json`` for a finished run."""
        self._artifact_dir.mkdir(parents=True, exist_ok=True)
        path = self._artifact_dir / "summary.json"
        path.write_text(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        self._log.info("summary_saved", path=str(path), total=summary.total, passed=summary.passed)
        return path
