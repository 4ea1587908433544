"""
Tests for resolving target specifiers and looking up ABI versions
"""

import pytest

from prebuildify.build.errors import AbiLookupError, ConfigurationError
from prebuildify.build.targets import KnownTargets, Target, parse_target, parse_version, resolve_targets
from tests.utils import FAKE_TARGETS


def test_plain_version_defaults_to_node():
    assert resolve_targets(["12.4.0"]) == [Target("node", "12.4.0")]


def test_leading_v_is_stripped():
    assert resolve_targets(["electron@v8.0.0", "v10.0.0"]) == [Target("electron", "8.0.0"),
                                                               Target("node", "10.0.0")]


def test_mapping_targets():
    assert parse_target({"runtime": "electron", "target": "3.0.0"}) == Target("electron", "3.0.0")
    assert parse_target({"runtime": "node", "version": "8.1.0"}) == Target("node", "8.1.0")
    with pytest.raises(ConfigurationError):
        parse_target({"version": "8.1.0"})


def test_order_and_duplicates_are_kept():
    raw = ["node@8.0.0", "electron@2.0.0", "node@8.0.0"]
    targets = resolve_targets(raw)
    assert len(targets) == len(raw)
    assert targets[0] == targets[2]
    assert targets[1].runtime == "electron"


def test_all_overrides_explicit_targets():
    assert resolve_targets(["1.0.0"], all=True, known_targets=FAKE_TARGETS) == FAKE_TARGETS.targets()


def test_napi_without_targets_uses_newest_node_and_electron():
    assert resolve_targets([], napi=True, known_targets=FAKE_TARGETS) == [
        Target("node", "9.6.1"),
        Target("electron", "3.0.0")
    ]


def test_napi_keeps_other_node_versions():
    known = KnownTargets([("node", "10.0.0", "64"), ("electron", "3.0.0", "64")])
    assert resolve_targets([], napi=True, known_targets=known) == [
        Target("node", "10.0.0"),
        Target("electron", "3.0.0")
    ]


def test_napi_with_explicit_targets():
    assert resolve_targets(["node@8.0.0"], napi=True, known_targets=FAKE_TARGETS) == [Target("node", "8.0.0")]


def test_no_targets_fails():
    with pytest.raises(ConfigurationError, match="at least one target"):
        resolve_targets([])


def test_parse_version_order():
    assert parse_version("8.0.0-beta.1") < parse_version("8.0.0") < parse_version("8.0.1")
    assert parse_version("v10") == (10, 0, 0, True, "")
    with pytest.raises(ValueError):
        parse_version("latest")


def test_abi_lookup():
    assert FAKE_TARGETS.abi("8.4.0") == "57"
    assert FAKE_TARGETS.abi("9.6.1") == "59"
    assert FAKE_TARGETS.abi("3.1.0", "electron") == "64"
    assert FAKE_TARGETS.abi("57") == "57"


@pytest.mark.parametrize("version,runtime", [
    ("7.0.0", "node"),
    ("10.0.0", "node"),
    ("4.0.0", "electron"),
    ("1.0.0", "nw.js")
])
def test_abi_lookup_fails(version: str, runtime: str):
    with pytest.raises(AbiLookupError):
        FAKE_TARGETS.abi(version, runtime)


def test_bundled_table():
    known = KnownTargets.default()
    assert len(known) > 0
    assert known.runtimes()[:2] == ["node", "electron"]
    assert known.abi("9.0.0") == "59"
    assert known.abi("12.4.0") == "72"
    assert known.latest("node").runtime == "node"


def test_table_from_file(tmp_path):
    file = tmp_path / "targets.yaml"
    file.write_text("- {runtime: node, target: 8.0.0, abi: 57}\n- {runtime: node, target: 9.0.0, abi: 59}\n")
    known = KnownTargets.from_file(str(file))
    assert known.targets() == [Target("node", "8.0.0"), Target("node", "9.0.0")]
    assert known.abi("9.1.0") == "59"


def test_invalid_table_file(tmp_path):
    file = tmp_path / "targets.yaml"
    file.write_text("- {target: 8.0.0, abi: 57}\n")
    with pytest.raises(TypeError):
        KnownTargets.from_file(str(file))


@pytest.mark.parametrize("raw", ["electron@", "node@v", "v", "@1.0.0", {"runtime": "node", "version": ""},
                                 {"runtime": "", "version": "8.0.0"}])
def test_targets_without_version_or_runtime(raw):
    with pytest.raises(ConfigurationError):
        resolve_targets([raw])
