"""
Tests for compiler command rendering and resource keys.
"""

from pathlib import Path

import pytest

from gridrunner.core.commands import CommandBuilder
from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
)


def profile(
    backend: Backend = Backend.C,
    optimizer: Optimizer = Optimizer.DEBUG,
    memory: MemoryModel = MemoryModel.ARC,
    test: str = "tests/tfoo.nim",
) -> Profile:
    return Profile(backend=backend, optimizer=optimizer, memory=memory, test=test)


@pytest.fixture
def local_builder(make_config) -> CommandBuilder:
    return CommandBuilder(make_config(), pid=4242)


@pytest.fixture
def ci_builder(make_config) -> CommandBuilder:
    return CommandBuilder(make_config(ci=True, toolchain_version="1.4"), pid=4242)


class TestResourceKeys:
    def test_local_key_shares_across_memory_models(self, local_builder):
        arc = profile(memory=MemoryModel.ARC)
        orc = profile(memory=MemoryModel.ORC)
        assert local_builder.shared_resource_key(arc) == local_builder.shared_resource_key(orc)

    def test_local_key_separates_tests_and_optimizers(self, local_builder):
        key = local_builder.shared_resource_key(profile())
        assert key != local_builder.shared_resource_key(profile(test="tests/tbar.nim"))
        assert key != local_builder.shared_resource_key(
            profile(optimizer=Optimizer.DANGER)
        )

    def test_ci_key_shares_across_tests(self, ci_builder):
        key = ci_builder.shared_resource_key(profile())
        assert key == "c.debug.arc"
        assert key == ci_builder.shared_resource_key(profile(test="tests/tbar.nim"))
        assert key != ci_builder.shared_resource_key(profile(memory=MemoryModel.ORC))

    def test_cache_dir_is_keyed_and_per_process(self, local_builder, tmp_path):
        directory = local_builder.cache_dir(profile())
        assert directory.parent == Path(tmp_path)
        assert directory.name.endswith("-4242")
        assert local_builder.shared_resource_key(profile()) in directory.name


class TestRender:
    def test_basic_command(self, local_builder):
        command = local_builder.render(profile())
        assert command.startswith("nim c --gc:arc ")
        assert command.endswith(" tests/tfoo.nim")
        assert "--debuginfo" in command
        assert "--incremental:on" in command
        assert "--run" in command
        assert "--hint[" not in command

    def test_vm_has_no_gc_switch(self, ci_builder):
        command = ci_builder.render(profile(backend=Backend.JS, memory=MemoryModel.VM))
        assert command.startswith("nim js ")
        assert "--gc:" not in command
        assert "--define:nodejs" in command

    def test_panics_are_stripped_from_js_builds(self, make_config):
        builder = CommandBuilder(make_config(ci=True, toolchain_version="1.6"))
        danger = profile(optimizer=Optimizer.DANGER)
        assert "--panics:on" in builder.render(danger)
        # 1.6 keeps panics for js; 1.4 has no strict danger flags at all
        assert "--panics:on" in builder.render(
            profile(backend=Backend.JS, optimizer=Optimizer.DANGER, memory=MemoryModel.VM)
        )

    def test_strip_panics_generation(self, make_config):
        config = make_config(ci=True, toolchain_version="1.4", extra_args=("--panics:on",))
        builder = CommandBuilder(config)
        js = profile(backend=Backend.JS, memory=MemoryModel.VM)
        assert "--panics:on" not in builder.render(js)
        assert "--panics:on" in builder.render(profile())

    def test_compile_only_suppresses_run(self, make_config):
        builder = CommandBuilder(make_config(extra_args=("--compileOnly",)))
        command = builder.render(profile())
        assert "--compileOnly" in command
        assert "--run" not in command

    def test_output_names_are_unique_per_profile(self, local_builder):
        first = local_builder.render(profile())
        second = local_builder.render(profile(memory=MemoryModel.ORC))
        assert profile().digest in first
        assert profile(memory=MemoryModel.ORC).digest in second

    def test_test_path_is_quoted(self, local_builder):
        command = local_builder.render(profile(test="tests/my tests/tfoo.nim"))
        assert command.endswith("'tests/my tests/tfoo.nim'")

    def test_hints(self, local_builder, ci_builder):
        debug = local_builder(profile())
        assert "--hint[Performance]=off" in debug
        danger = local_builder(profile(optimizer=Optimizer.DANGER))
        assert "--hint[Performance]=off" not in danger
        assert "--hint[Cc]=off" in danger

        ci = ci_builder(profile(optimizer=Optimizer.DANGER))
        assert "--hint[Performance]=off" in ci
        assert "--warning[UnreachableCode]=off" in ci
        assert "--warning[" not in danger

    def test_rendering_is_deterministic(self, local_builder):
        assert local_builder(profile()) == local_builder(profile())

    def test_sink_inference_generation(self, make_config):
        builder = CommandBuilder(make_config(toolchain_version="1.2"))
        assert "--sinkInference:off" in builder.render(profile())
