"""Fragment cache - evaluated chunk output keyed by chunk label.

Each entry records the fingerprint of what produced it (code, language and
the option values that change output). A lookup whose fingerprint differs
raises CacheMismatchError so stale output is never served; the caller
evicts and recomputes.

Layout:
    <cache_dir>/<label>-<hash>.json    one msgspec-encoded CacheEntry per chunk
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import msgspec

from lithe.exceptions import CacheMismatchError

log = logging.getLogger(__name__)


class CacheEntry(msgspec.Struct):
    label: str
    fingerprint: str
    language: str
    code: str
    options: Dict[str, Any]
    output: str


def compute_fingerprint(code: str, language: str, options: Dict[str, Any]) -> str:
    """Hash of (code, language, relevant option values)."""
    options_json = json.dumps(options, sort_keys=True, default=str)
    combined = f"{language}\x00{options_json}\x00{code}"
    return hashlib.sha256(combined.encode()).hexdigest()[:16]


def _entry_filename(label: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_.-]", "_", label)[:64]
    digest = hashlib.sha256(label.encode()).hexdigest()[:8]
    return f"{safe}-{digest}.json"


class FragmentCache:
    """On-disk cache of evaluated chunk output.

    Reads go through an in-memory index; writes are serialized by a lock.
    The directory may be deleted at any time.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._index: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._decoder = msgspec.json.Decoder(CacheEntry)
        self._encoder = msgspec.json.Encoder()

    def _path(self, label: str) -> Path:
        return self.root / _entry_filename(label)

    def _load(self, label: str) -> Optional[CacheEntry]:
        entry = self._index.get(label)
        if entry is not None:
            return entry

        path = self._path(label)
        if not path.exists():
            return None

        try:
            entry = self._decoder.decode(path.read_bytes())
        except (msgspec.DecodeError, OSError) as e:
            raise CacheMismatchError(label, expected="a valid entry", found="unreadable") from e

        with self._lock:
            self._index[label] = entry
        return entry

    def lookup(self, label: str, fingerprint: str) -> Optional[str]:
        """Return cached output for `label`, or None if nothing is cached.

        Raises:
            CacheMismatchError: The entry was produced from different input,
                or its stored code no longer hashes to its fingerprint.
        """
        entry = self._load(label)
        if entry is None:
            return None

        if entry.fingerprint != fingerprint:
            raise CacheMismatchError(label, expected=fingerprint, found=entry.fingerprint)

        actual = compute_fingerprint(entry.code, entry.language, entry.options)
        if actual != entry.fingerprint:
            raise CacheMismatchError(label, expected=entry.fingerprint, found=actual)

        log.debug("Cache hit for chunk %s (%s)", label, fingerprint)
        return entry.output

    def store(self, entry: CacheEntry) -> None:
        path = self._path(entry.label)
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_bytes(self._encoder.encode(entry))
            os.replace(tmp, path)
            self._index[entry.label] = entry
        log.debug("Cached chunk %s (%s)", entry.label, entry.fingerprint)

    def evict(self, label: str) -> None:
        with self._lock:
            self._index.pop(label, None)
            path = self._path(label)
            if path.exists():
                path.unlink()

    def clear(self) -> None:
        """Drop every entry and remove the cache directory."""
        with self._lock:
            self._index.clear()
            if self.root.exists():
                shutil.rmtree(self.root)
