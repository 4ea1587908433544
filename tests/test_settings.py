"""
Tests related to the processing of settings
"""
import os

import pytest
import yaml

from prebuildify.build.targets import Target, resolve_targets
from prebuildify.utils.settings import Settings, SettingsError
from tests.utils import run_prebuildify


def test_defaults():
    assert Settings()["build/cwd"] == "."
    assert Settings()["build/strip"] is None
    assert Settings()["build/targets"] == []
    assert Settings()["log_level"] == "info"


def test_set_and_get():
    Settings()["build/arch"] = "arm64"
    assert Settings()["build/arch"] == "arm64"
    assert Settings()["build"]["arch"] == "arm64"


def test_targets_tuple_becomes_list():
    Settings()["build/targets"] = ("node@8.0.0", "electron@3.0.0")
    assert Settings()["build/targets"] == ["node@8.0.0", "electron@3.0.0"]


def test_set_invalid_value():
    with pytest.raises(SettingsError):
        Settings()["build/targets"] = ["node@latest"]
    assert Settings()["build/targets"] == []
    with pytest.raises(SettingsError):
        Settings()["log_level"] = "verbose"


def test_unknown_key():
    assert not Settings().has_key("build/jobs")
    with pytest.raises(SettingsError):
        Settings()["build/jobs"]
    with pytest.raises(SettingsError):
        Settings()["build/jobs"] = 3


def test_load_file(tmp_path):
    file = tmp_path / "prebuildify.yaml"
    file.write_text(yaml.safe_dump({"build": {"arch": "ia32", "targets": ["node@8.0.0"], "strip": True}}))
    Settings().load_file(str(file))
    assert Settings()["build/arch"] == "ia32"
    assert Settings()["build/targets"] == ["node@8.0.0"]
    assert Settings()["build/strip"] is True
    assert Settings()["build/cwd"] == "."


def test_load_invalid_file_keeps_settings(tmp_path):
    file = tmp_path / "prebuildify.yaml"
    file.write_text(yaml.safe_dump({"build": {"arch": "ia32", "debug": "yes"}}))
    with pytest.raises(SettingsError):
        Settings().load_file(str(file))
    assert Settings()["build/arch"] == ""
    with pytest.raises(SettingsError):
        Settings().load_file(str(tmp_path / "missing.yaml"))


def test_settings_key_loads_file(tmp_path):
    file = tmp_path / "other.yaml"
    file.write_text(yaml.safe_dump({"build": {"napi": True}}))
    Settings()["settings"] = str(file)
    assert Settings()["build/napi"] is True


def test_store_and_load(tmp_path):
    Settings()["build/targets"] = ["electron@3.0.0"]
    Settings()["build/preinstall"] = "npm run prepare"
    file = str(tmp_path / "prebuildify.yaml")
    Settings().store_into_file(file)
    stored = Settings()["build"]
    Settings().reset()
    assert Settings()["build/targets"] == []
    Settings().load_file(file)
    assert Settings()["build"] == stored


def test_config_not_ignored(tmp_path):
    """
    Options that aren't passed mustn't override the values from the settings file
    """
    file = str(tmp_path / "stored.yaml")
    run_prebuildify("init " + file, settings={"build": {"targets": ["node@9.1.0"], "arch": "arm"}})
    with open(file) as f:
        stored = yaml.safe_load(f)
    assert stored["build"]["targets"] == ["node@9.1.0"]
    assert stored["build"]["arch"] == "arm"
    assert Settings()["build/targets"] == []


def test_config_file_of_build(tmp_path):
    gyp = tmp_path / "node-gyp"
    gyp.write_text("#!/bin/sh\nmkdir -p build/Release\nprintf module > build/Release/addon.node\n")
    os.chmod(str(gyp), 0o755)
    run_prebuildify("build", settings={"build": {"targets": ["node@8.4.0"], "cwd": str(tmp_path), "arch": "x64",
                                                 "platform": "linux", "node_gyp": str(gyp), "strip": False}})
    assert os.listdir(str(tmp_path / "prebuilds" / "linux-x64")) == ["node-57.node"]


def test_load_from_dict():
    Settings().load_from_dict({"build": {"all": True, "quiet": True}, "log_level": "error"})
    assert Settings()["build/all"] is True
    assert Settings()["build/quiet"] is True
    with pytest.raises(SettingsError):
        Settings().load_from_dict({"build": {"jobs": 2}})
    assert Settings()["log_level"] == "error"


def test_mapping_targets_in_file(tmp_path):
    file = tmp_path / "prebuildify.yaml"
    file.write_text("build:\n  targets:\n    - node@8.0.0\n    - {runtime: electron, version: 3.0.0}\n")
    Settings().load_file(str(file))
    assert resolve_targets(Settings()["build/targets"]) == [Target("node", "8.0.0"), Target("electron", "3.0.0")]
    with pytest.raises(SettingsError):
        Settings()["build/targets"] = [{"runtime": "electron"}]
