"""JSON file storage for per-domain query statistics."""

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ...domain.models.stats import DomainStats
from ...domain.ports.stats_store import StatsStore

logger = logging.getLogger(__name__)


class JsonStatsStore(StatsStore):
    """One JSON document per domain, ``<directory>/<domain>-stats.json``.

    A missing, unreadable or malformed document loads as zero state.
    Writes go to a temporary file that replaces the document, so readers
    such as the dashboard never see a half-written file.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    def path_for(self, domain: str) -> Path:
        """Location of a domain's stats document."""
        return self._directory / f"{domain}-stats.json"

    def load(self, domain: str, today: date) -> DomainStats:
        path = self.path_for(domain)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return DomainStats.model_validate(json.load(f))
        except FileNotFoundError:
            return DomainStats.empty(today)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"⚠️ Resetting unreadable stats file {path}: {e}")
            return DomainStats.empty(today)

    def save(self, domain: str, stats: DomainStats) -> None:
        """Persist the stats; a failed write is logged and the old file kept."""
        path = self.path_for(domain)
        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{domain}-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stats.to_document(), f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"❌ Failed to write stats file {path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
