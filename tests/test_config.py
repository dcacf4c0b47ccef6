"""
Tests for settings, generations and configuration resolution.
"""

import pytest

from gridrunner.core.config import RunnerSettings, build_config
from gridrunner.core.errors import ConfigurationError
from gridrunner.core.generations import (
    DEFAULT_VERSION,
    GENERATIONS,
    generation_for,
    parse_version,
)
from gridrunner.datastructures.profile import Backend, MemoryModel, Optimizer


class TestGenerations:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("1.6", (1, 6)), ("1.4.8", (1, 4)), ("Nim Compiler Version 2.0.2", (2, 0))],
    )
    def test_parse_version(self, text, expected):
        assert parse_version(text) == expected

    def test_parse_version_rejects_garbage(self):
        with pytest.raises(ConfigurationError):
            parse_version("latest")

    @pytest.mark.parametrize(
        ("version", "expected"),
        [((0, 19), (1, 0)), ((1, 3), (1, 2)), ((1, 4), (1, 4)), ((2, 2), (1, 6))],
    )
    def test_generation_lookup(self, version, expected):
        assert generation_for(version).version == expected

    def test_generation_table_is_ordered(self):
        versions = [generation.version for generation in GENERATIONS]
        assert versions == sorted(versions)
        assert DEFAULT_VERSION == versions[-1]

    def test_known_solid_ceiling(self):
        generation = generation_for((1, 2))
        assert generation.known_solid(MemoryModel.REFC)
        assert generation.known_solid(MemoryModel.ARC)
        assert not generation.known_solid(MemoryModel.ORC)
        assert not generation_for((1, 6)).known_solid(MemoryModel.REFC)

    def test_vm_is_never_a_generation_memory_model(self):
        for generation in GENERATIONS:
            for ci in (False, True):
                assert MemoryModel.VM not in generation.memory_models(ci)


class TestSettings:
    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("GRIDRUNNER_CI", "true")
        monkeypatch.setenv("GRIDRUNNER_POLL_INTERVAL", "0.5")
        settings = RunnerSettings(_env_file=None)
        assert settings.ci
        assert settings.poll_interval == 0.5

    def test_ci_defaults_from_github_actions(self, monkeypatch):
        monkeypatch.delenv("GRIDRUNNER_CI", raising=False)
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        assert RunnerSettings(_env_file=None).ci
        monkeypatch.setenv("GITHUB_ACTIONS", "false")
        assert not RunnerSettings(_env_file=None).ci


class TestBuildConfig:
    def test_local_defaults(self, make_config):
        config = make_config()
        assert config.backends == (Backend.C,)
        assert config.optimizers == (Optimizer.DEBUG, Optimizer.DANGER)
        assert config.memory_models == (MemoryModel.ARC,)
        assert config.version_label == "1.6"
        assert "--incremental:on" in config.default_flags

    def test_ci_defaults(self, make_config):
        config = make_config(ci=True, toolchain_version="1.5")
        assert config.backends == (Backend.C, Backend.CPP, Backend.JS)
        assert config.optimizers == tuple(Optimizer)
        assert config.memory_models == (
            MemoryModel.REFC,
            MemoryModel.MARK_AND_SWEEP,
            MemoryModel.ARC,
            MemoryModel.ORC,
            MemoryModel.VM,
        )
        assert "--forceBuild:on" in config.default_flags
        assert "--incremental:off" in config.default_flags
        assert "--panics:on" in config.flags_for(Optimizer.DANGER)

    def test_vm_is_omitted_without_js(self, make_config):
        config = make_config(ci=True, backends=("c", "cpp"))
        assert MemoryModel.VM not in config.memory_models

    def test_axis_overrides(self, make_config):
        config = make_config(optimizers=("release", "debug"), memory_models=("orc",))
        assert config.optimizers == (Optimizer.DEBUG, Optimizer.RELEASE)
        assert config.memory_models == (MemoryModel.ORC,)

    def test_unknown_axis_value(self, make_config):
        with pytest.raises(ConfigurationError, match="Unknown Backend"):
            make_config(backends=("rust",))

    def test_poll_interval_must_be_positive(self, make_config):
        with pytest.raises(ConfigurationError):
            make_config(poll_interval=0)

    def test_detected_version_is_used_when_unset(self):
        settings = RunnerSettings(_env_file=None, ci=False, toolchain_version=None)
        assert build_config(settings, detected_version=(1, 2)).version == (1, 2)
        assert build_config(settings).version == DEFAULT_VERSION

    def test_explicit_version_wins(self):
        settings = RunnerSettings(_env_file=None, ci=False, toolchain_version="1.4")
        config = build_config(settings, detected_version=(1, 2))
        assert config.version == (1, 4)
        assert config.generation.version == (1, 4)
