from __future__ import annotations
from typing import Dict, Hashable, List, Set, Tuple

DEDUPE_MODES = ("exact", "subset")


class LabelDeduper:
    """
    Suppresses repeated label sets per metric within one snapshot.

    OpenVPN can list the same client twice, for example while a session
    is being renegotiated. A metric family must not carry the same label
    set twice, so the first row wins.

    Modes:
      exact
        A label vector is a duplicate only if that same vector was already
        recorded for the metric key.

      subset
        Matches older exporter output: a vector is a duplicate if every one
        of its values already appears somewhere among the values recorded
        for the metric key. Much looser, it can hide distinct rows that
        happen to share values.
    """

    def __init__(self, mode: str = "exact"):
        if mode not in DEDUPE_MODES:
            raise ValueError(f"unknown dedupe mode {mode!r}, expected one of {DEDUPE_MODES}")
        self.mode = mode
        self._seen: Dict[Hashable, Set[Tuple[str, ...]]] = {}
        self._values: Dict[Hashable, List[str]] = {}

    def seen(self, key: Hashable, labels: Tuple[str, ...]) -> bool:
        """
        True means this label vector was already emitted for key.
        """
        if self.mode == "exact":
            return labels in self._seen.get(key, ())

        recorded = self._values.get(key)
        if recorded is None or len(labels) > len(recorded):
            return False
        return all(v in recorded for v in labels)

    def record(self, key: Hashable, labels: Tuple[str, ...]) -> None:
        if self.mode == "exact":
            self._seen.setdefault(key, set()).add(labels)
        else:
            self._values.setdefault(key, []).extend(labels)

    def should_emit(self, key: Hashable, labels: Tuple[str, ...]) -> bool:
        """
        Check and record in one step. False means suppress.
        """
        if self.seen(key, labels):
            return False
        self.record(key, labels)
        return True
