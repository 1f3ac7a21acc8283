"""File-backed access to a persisted competition report."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from arena.serialize import load_json_object
from catchthecat.codec import expand_report
from catchthecat.reports import CompetitionReport, MatchReport


@dataclass
class ReportStore:
    """Loads the compact report document and decodes it once per file version."""

    path: Path
    _cached_mtime: float | None = field(default=None, init=False, repr=False)
    _document: dict[str, Any] | None = field(default=None, init=False, repr=False)
    _report: CompetitionReport | None = field(default=None, init=False, repr=False)

    def _refresh(self) -> None:
        if not self.path.exists():
            raise FileNotFoundError(f"No competition report at {self.path}")
        mtime = self.path.stat().st_mtime
        if self._report is not None and mtime == self._cached_mtime:
            return
        document = load_json_object(self.path.read_text(encoding="utf-8"), f"Report at {self.path}")
        self._report = expand_report(document)
        self._document = document
        self._cached_mtime = mtime

    def document(self) -> dict[str, Any]:
        """Return the compact document exactly as stored."""
        self._refresh()
        assert self._document is not None
        return self._document

    def report(self) -> CompetitionReport:
        self._refresh()
        assert self._report is not None
        return self._report

    def match(self, index: int) -> MatchReport:
        matches = self.report().matches
        if not 0 <= index < len(matches):
            raise KeyError(index)
        return matches[index]

    def filter_matches(self, username1: str | None = None, username2: str | None = None) -> list[tuple[int, MatchReport]]:
        """Matches involving one user, or played between two users."""
        names = [name for name in (username1, username2) if name]
        selected: list[tuple[int, MatchReport]] = []
        for index, match in enumerate(self.report().matches):
            if len(names) == 2:
                keep = {match.cat, match.catcher} == set(names) and match.cat != match.catcher
            elif len(names) == 1:
                keep = match.involves(names[0])
            else:
                keep = True
            if keep:
                selected.append((index, match))
        return selected
