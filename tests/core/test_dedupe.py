import pytest

from openvpn_exporter_mcp.core.dedupe import LabelDeduper


def test_exact_mode_only_matches_identical_vectors():
    d = LabelDeduper()
    assert d.should_emit("m", ("a", "b"))
    assert not d.should_emit("m", ("a", "b"))
    assert d.should_emit("m", ("b", "a"))
    # Keys are independent.
    assert d.should_emit("other", ("a", "b"))


def test_subset_mode_matches_any_recorded_values():
    d = LabelDeduper(mode="subset")
    assert d.should_emit("m", ("a", "b"))
    assert not d.should_emit("m", ("b", "a"))
    assert d.should_emit("m", ("a", "c"))
    # Recorded values accumulate across vectors.
    assert not d.should_emit("m", ("c", "b"))


def test_subset_mode_longer_vector_is_never_a_duplicate():
    d = LabelDeduper(mode="subset")
    d.record("m", ("a",))
    assert not d.seen("m", ("a", "a"))


def test_seen_does_not_record():
    d = LabelDeduper()
    assert not d.seen("m", ("a",))
    assert not d.seen("m", ("a",))


def test_unknown_mode():
    with pytest.raises(ValueError):
        LabelDeduper(mode="fuzzy")
