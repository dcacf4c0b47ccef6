"""
Tests for profiles, axes and statuses.
"""

import pytest
from hypothesis import given

from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
    StatusKind,
    profile_strategy,
    short_name,
    short_path,
)


def make_profile(
    backend: Backend = Backend.C,
    optimizer: Optimizer = Optimizer.DEBUG,
    memory: MemoryModel = MemoryModel.ARC,
    test: str = "tests/tfoo.nim",
) -> Profile:
    return Profile(backend=backend, optimizer=optimizer, memory=memory, test=test)


class TestAxes:
    """Axis ordering and naming."""

    def test_axis_orders_run_from_loose_to_strict(self):
        assert Backend.C < Backend.CPP < Backend.JS
        assert Optimizer.DEBUG < Optimizer.RELEASE < Optimizer.DANGER
        assert (
            MemoryModel.REFC
            < MemoryModel.MARK_AND_SWEEP
            < MemoryModel.ARC
            < MemoryModel.ORC
            < MemoryModel.VM
        )

    def test_labels(self):
        assert Backend.CPP.label == "cpp"
        assert Optimizer.DANGER.label == "danger"
        assert MemoryModel.MARK_AND_SWEEP.label == "markAndSweep"
        assert MemoryModel.MARK_AND_SWEEP.column_label == "m&s"
        assert MemoryModel.ORC.column_label == "orc"

    def test_parse_accepts_labels_and_names(self):
        assert MemoryModel.parse("markAndSweep") is MemoryModel.MARK_AND_SWEEP
        assert MemoryModel.parse("mark_and_sweep") is MemoryModel.MARK_AND_SWEEP
        assert MemoryModel.parse("m&s") is MemoryModel.MARK_AND_SWEEP
        assert Backend.parse(" js ") is Backend.JS

    def test_parse_rejects_unknown_values(self):
        with pytest.raises(ValueError, match="Unknown Optimizer 'fast'"):
            Optimizer.parse("fast")


class TestStatusKind:
    def test_order(self):
        assert (
            StatusKind.NONE
            < StatusKind.SKIP
            < StatusKind.PASS
            < StatusKind.PART
            < StatusKind.FAIL
            < StatusKind.INFO
        )

    def test_failure_boundary_is_part(self):
        assert not StatusKind.PART.is_failure
        assert not StatusKind.PASS.is_failure
        assert StatusKind.FAIL.is_failure
        assert StatusKind.INFO.is_failure

    def test_none_renders_blank(self):
        assert StatusKind.NONE.glyph == " "
        assert all(status.glyph.strip() for status in StatusKind if status.value)


class TestProfile:
    def test_equality_covers_the_test(self):
        assert make_profile() == make_profile()
        assert make_profile() != make_profile(test="tests/tbar.nim")
        assert hash(make_profile()) == hash(make_profile())

    def test_ordering_ignores_the_test(self):
        a = make_profile(test="tests/ta.nim")
        b = make_profile(test="tests/tb.nim")
        assert not a < b
        assert not b < a

    def test_ordering_priority_is_backend_memory_optimizer(self):
        loose_memory_strict_opt = make_profile(
            memory=MemoryModel.REFC, optimizer=Optimizer.DANGER
        )
        strict_memory_loose_opt = make_profile(
            memory=MemoryModel.ORC, optimizer=Optimizer.DEBUG
        )
        assert loose_memory_strict_opt < strict_memory_loose_opt
        assert make_profile(backend=Backend.C, memory=MemoryModel.ORC) < make_profile(
            backend=Backend.CPP, memory=MemoryModel.REFC
        )

    @pytest.mark.parametrize(
        ("backend", "memory", "expected"),
        [
            (Backend.C, MemoryModel.VM, True),
            (Backend.CPP, MemoryModel.VM, True),
            (Backend.JS, MemoryModel.ARC, True),
            (Backend.JS, MemoryModel.VM, False),
            (Backend.C, MemoryModel.ORC, False),
        ],
    )
    def test_nonsensical(self, backend, memory, expected):
        assert make_profile(backend=backend, memory=memory).nonsensical is expected

    def test_labels_and_str(self):
        profile = make_profile(
            backend=Backend.CPP, optimizer=Optimizer.RELEASE, test="tests/sub/tfoo.nim"
        )
        assert profile.labels == ("sub/tfoo", "cpp", "release")
        assert str(profile) == "tfoo: cpp arc release"

    def test_with_helpers_keep_other_fields(self):
        profile = make_profile(optimizer=Optimizer.DANGER)
        assert profile.with_optimizer(Optimizer.DEBUG) == make_profile()
        assert profile.with_memory(MemoryModel.REFC).optimizer is Optimizer.DANGER

    def test_digest_is_stable(self):
        assert make_profile().digest == make_profile().digest
        assert make_profile().digest != make_profile(memory=MemoryModel.ORC).digest

    @given(profile_strategy(), profile_strategy())
    def test_equal_profiles_hash_equally(self, first: Profile, second: Profile):
        fields_match = (
            first.backend == second.backend
            and first.optimizer == second.optimizer
            and first.memory == second.memory
            and first.test == second.test
        )
        assert (first == second) == fields_match
        if first == second:
            assert hash(first) == hash(second)


def test_short_names():
    assert short_name("tests/tfoo.nim") == "tfoo"
    assert short_path("a/tests/tfoo.nim") == "tests/tfoo"
    assert short_path("tfoo.nim") == "tfoo"
