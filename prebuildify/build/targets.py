"""
Resolution of the targets to build for and lookup of their ABI versions.

The runtimes and versions prebuildify knows about are kept in a `KnownTargets` table,
that is loaded from a YAML file (data/targets.yaml by default) and passed to everything
that needs it, so it can be swapped for a smaller table.
"""

import os
import re
from collections import namedtuple

import yaml

from ..utils.typecheck import *
from .errors import AbiLookupError, ConfigurationError
import typing as t


Target = namedtuple("Target", ["runtime", "version"])
""" A runtime (node, electron, ...) and its version (without a leading "v") to build for """

KnownTarget = namedtuple("KnownTarget", ["runtime", "version", "abi"])
""" An entry of the known targets table """


_version_re = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([\w.]+))?")


def parse_version(version: str) -> t.Tuple[int, int, int, bool, str]:
    """
    Parses a semver like version into a tuple that is ordered like the versions,
    pre releases ("8.0.0-beta.1") come before their release.

    :raises: ValueError if the version doesn't start with a number
    """
    m = _version_re.match(version.strip())
    if not m:
        raise ValueError("{!r} isn't a valid version".format(version))
    major, minor, patch, pre = m.groups()
    return int(major), int(minor or 0), int(patch or 0), pre is None, pre or ""


class KnownTargets:
    """
    Table of all (runtime, version, abi) entries prebuildify can build for.
    The entries of each runtime are ordered by version.
    """

    entry_scheme = List(Dict({
        "runtime": Str(),
        "target": Str() | Int(),
        "abi": Str() | Int()
    }, unknown_keys=True))  # type: List
    """ Type scheme of the table files """

    default_file = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data",
                                "targets.yaml")  # type: str
    """ Bundled table """

    def __init__(self, entries: t.Iterable[t.Union[KnownTarget, t.Tuple[str, str, str]]]):
        self.entries = [KnownTarget(*entry) for entry in entries]  # type: t.List[KnownTarget]

    @classmethod
    def from_file(cls, file: str) -> 'KnownTargets':
        """
        Loads a table from a YAML file that contains a list of {runtime, target, abi} mappings.

        :raises: TypeError if the file content isn't valid
        """
        with open(file, "r") as f:
            data = yaml.safe_load(f)
        typecheck(data, cls.entry_scheme, "targets file {!r}".format(file))
        return KnownTargets((entry["runtime"], str(entry["target"]), str(entry["abi"])) for entry in data)

    @classmethod
    def default(cls) -> 'KnownTargets':
        """ The table bundled with prebuildify """
        return cls.from_file(cls.default_file)

    def targets(self) -> t.List[Target]:
        """ All known targets in table order """
        return [Target(entry.runtime, entry.version) for entry in self.entries]

    def runtimes(self) -> t.List[str]:
        ret = []
        for entry in self.entries:
            if entry.runtime not in ret:
                ret.append(entry.runtime)
        return ret

    def for_runtime(self, runtime: str) -> t.List[KnownTarget]:
        return [entry for entry in self.entries if entry.runtime == runtime]

    def latest(self, runtime: str) -> t.Optional[Target]:
        """ Last (newest) known target of the passed runtime or None """
        entries = self.for_runtime(runtime)
        if not entries:
            return None
        return Target(entries[-1].runtime, entries[-1].version)

    def abi(self, version: str, runtime: str = "node") -> str:
        """
        Returns the ABI version of the passed runtime version.

        A plain number is already an ABI version. Otherwise the ABI of the newest
        known entry that isn't newer than the passed version is used.

        :raises: AbiLookupError if the version is older than all known ones or
                 at least the next major release after the newest known one
        """
        if re.match(r"^\d+$", version):
            return version
        requested = parse_version(version)
        abi = None
        last = None
        for entry in self.for_runtime(runtime):
            entry_version = parse_version(entry.version)
            if entry_version <= requested and (last is None or entry_version >= last):
                abi = entry.abi
                last = entry_version
        if abi is None or requested >= self._next_release(runtime):
            raise AbiLookupError(version, runtime)
        return abi

    def _next_release(self, runtime: str) -> t.Tuple[int, int, int, bool, str]:
        newest = max(parse_version(entry.version) for entry in self.for_runtime(runtime))
        return newest[0] + 1, 0, 0, False, ""

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def parse_target(raw: t.Union[Target, t.Dict[str, str], str]) -> Target:
    """
    Parses a single target: a Target, a mapping with "runtime" and "version" (or "target")
    or a string of the form "[runtime@]version". The runtime defaults to node, a leading "v"
    of the version is removed.

    :raises: ConfigurationError if the target can't be parsed
    """
    if isinstance(raw, Target):
        return raw
    if isinstance(raw, dict):
        version = raw.get("version", raw.get("target"))
        if not raw.get("runtime") or version in [None, ""]:
            raise ConfigurationError("Target {!r} needs a runtime and a version".format(raw))
        return Target(str(raw["runtime"]), str(version))
    if not isinstance(raw, str) or raw == "":
        raise ConfigurationError("Invalid target {!r}".format(raw))
    if "@" not in raw:
        raw = "node@" + raw
    runtime, version = raw.split("@")[0:2]
    if version.startswith("v"):
        version = version[1:]
    if not runtime or not version:
        raise ConfigurationError("Invalid target {!r}, expected [runtime@]version".format(raw))
    return Target(runtime, version)


def resolve_targets(raw_targets: t.Iterable[t.Union[Target, t.Dict[str, str], str]], all: bool = False,
                    napi: bool = False, known_targets: KnownTargets = None) -> t.List[Target]:
    """
    Resolves the passed target specifiers into the ordered list of targets to build.

    :param raw_targets: explicit targets, duplicates are kept
    :param all: build for every known target (ignores the explicit targets)
    :param napi: build for the newest node and electron if no targets are given
    :param known_targets: table of known targets, defaults to the bundled one
    :raises: ConfigurationError if this results in no targets
    """
    targets = [parse_target(raw) for raw in raw_targets]

    if all or (napi and not targets):
        known_targets = known_targets or KnownTargets.default()

    if all:
        targets = known_targets.targets()

    if napi and not targets:
        targets = [target for target in [known_targets.latest("node"), known_targets.latest("electron")]
                   if target is not None]
        # the ABI entry of node 9.0.0 is broken
        if targets and targets[0].runtime == "node" and targets[0].version == "9.0.0":
            targets[0] = Target("node", "9.6.1")

    if not targets:
        raise ConfigurationError("You must specify at least one target")
    return targets
