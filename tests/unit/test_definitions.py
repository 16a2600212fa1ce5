"""Load definition log: ordering, snapshots and reset."""

from __future__ import annotations

from pathlib import Path
import threading

import pytest

from propstack.definitions import DefinitionKind, LoadDefinition, LoadDefinitionLog
from propstack.locator import ResourceAnchor

pytestmark = pytest.mark.unit


def test_absolute_definition_uses_path_as_name() -> None:
    entry = LoadDefinition.from_absolute_path("/etc/app/defaults-ee.properties")
    assert entry.kind is DefinitionKind.ABSOLUTE_PATH
    assert entry.name == entry.path == entry.location


def test_anchor_definition_describes_its_anchor(tmp_path: Path) -> None:
    anchor = ResourceAnchor.for_directory(tmp_path, name="acme.billing")
    entry = LoadDefinition.from_anchor(anchor, "defaults-ee.properties")
    assert entry.kind is DefinitionKind.RESOURCE_RELATIVE
    assert entry.name == "acme.billing"
    assert entry.location == "acme.billing:defaults-ee.properties"


def test_snapshot_is_an_ordered_copy() -> None:
    log = LoadDefinitionLog()
    first = LoadDefinition.from_absolute_path("/a")
    second = LoadDefinition.from_absolute_path("/b")
    log.record(first)
    log.record(second)

    snap = log.snapshot()
    log.record(LoadDefinition.from_absolute_path("/c"))

    assert snap == [first, second]
    assert len(log) == 3


def test_reset_discards_history_but_not_earlier_snapshots() -> None:
    log = LoadDefinitionLog()
    log.record(LoadDefinition.from_absolute_path("/a"))
    snap = log.snapshot()
    log.reset()

    assert len(log) == 0
    assert list(log) == []
    assert [d.path for d in snap] == ["/a"]


def test_concurrent_records_are_all_kept() -> None:
    log = LoadDefinitionLog()

    def worker(n: int) -> None:
        for i in range(100):
            log.record(LoadDefinition.from_absolute_path(f"/{n}/{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(log) == 800
