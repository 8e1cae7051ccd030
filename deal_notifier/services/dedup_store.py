"""
Persistent store of deals that have already been notified.

Records live in a JSON state file of the form
``{"deals": {<deal_id>: <record>}, "last_updated": <iso timestamp>}``.
A record is written once and never updated; its presence suppresses any
further notification for that deal id.
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import StoreError
from ..models.deal import Deal, SeenDealRecord
from ..utils.logging import get_logger


class JsonDedupStore:
    """Dedup store backed by a JSON file, safe to share across threads."""

    def __init__(self, state_file: str = "data/seen_deals.json"):
        """
        Initialize the dedup store and load existing records.

        Args:
            state_file: Path to the JSON state file

        Raises:
            StoreError: If an existing state file cannot be read
        """
        self.state_file = Path(state_file)
        self.logger = get_logger("dedup.store", {"state_file": str(self.state_file)})
        self._lock = threading.Lock()
        self._records: Dict[str, SeenDealRecord] = {}

        self._load_state()

        self.logger.info(
            "Dedup store initialized", extra={"known_deals": len(self._records)}
        )

    def _load_state(self) -> None:
        """Load seen records from the state file, if present."""
        if not self.state_file.exists():
            return

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # Never start empty over an unreadable file
            raise StoreError(f"Could not load state from {self.state_file}: {e}") from e

        deals = data.get("deals", {}) if isinstance(data, dict) else {}
        for deal_id, raw_record in deals.items():
            try:
                record = SeenDealRecord.from_dict({"deal_id": deal_id, **raw_record})
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(
                    "Skipping malformed seen record",
                    extra={"deal_id": deal_id, "error": str(e)},
                )
                continue
            self._records[str(deal_id)] = record

    def _save_state(self) -> None:
        """Write all records atomically. Caller holds the lock."""
        data = {
            "deals": {
                deal_id: record.to_dict() for deal_id, record in self._records.items()
            },
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.state_file.parent), prefix=".seen_deals.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.state_file)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StoreError(f"Could not save state to {self.state_file}: {e}") from e

    def exists(self, deal_id: str) -> bool:
        """Check whether a deal id has already been notified."""
        with self._lock:
            return deal_id in self._records

    def record(self, deal: Deal, search_term: str) -> None:
        """
        Record a deal as notified.

        An existing record for the same id is left untouched.

        Raises:
            StoreError: If the state file cannot be written
        """
        with self._lock:
            if deal.deal_id in self._records:
                self.logger.debug(
                    "Deal already recorded", extra={"deal_id": deal.deal_id}
                )
                return

            record = SeenDealRecord.from_deal(deal, search_term)
            self._records[deal.deal_id] = record
            try:
                self._save_state()
            except StoreError:
                del self._records[deal.deal_id]
                raise

        self.logger.debug(
            "Recorded seen deal",
            extra={"deal_id": deal.deal_id, "search_term": search_term},
        )

    def get(self, deal_id: str) -> Optional[SeenDealRecord]:
        """Get the seen record for a deal id."""
        with self._lock:
            return self._records.get(deal_id)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def prune(self, max_age_days: int) -> int:
        """
        Remove records first seen more than max_age_days ago.

        Returns:
            Number of records removed
        """
        cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)
        cutoff_millis = int(cutoff.timestamp() * 1000)

        with self._lock:
            expired = [
                deal_id
                for deal_id, record in self._records.items()
                if record.timestamp < cutoff_millis
            ]
            if not expired:
                return 0

            removed = {deal_id: self._records.pop(deal_id) for deal_id in expired}
            try:
                self._save_state()
            except StoreError:
                self._records.update(removed)
                raise

        self.logger.info(
            "Pruned seen records",
            extra={"removed": len(expired), "max_age_days": max_age_days},
        )
        return len(expired)
