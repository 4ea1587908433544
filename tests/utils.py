import copy
import os
import shlex
import stat
import typing as t
from typing import NamedTuple

import yaml
from click.testing import CliRunner

from prebuildify.build.builder import BuildConfiguration
from prebuildify.build.targets import KnownTargets
from prebuildify.utils.settings import Settings
from prebuildify.scripts.cli import cli


FAKE_TARGETS = KnownTargets([
    ("node", "8.0.0", "57"),
    ("node", "9.0.0", "59"),
    ("electron", "2.0.0", "57"),
    ("electron", "3.0.0", "64"),
])
""" Small table of known targets, the newest node is 9.0.0 """


def make_script(path: str, body: str) -> str:
    """
    Creates an executable shell script.

    :return: path of the script
    """
    with open(path, "w") as f:
        f.write("#!/bin/sh\n" + body + "\n")
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def fake_node_gyp(directory: str, log: str = None, fail_for: str = None, module: str = "addon.node",
                  produce: bool = True) -> str:
    """
    Creates a script that behaves like node-gyp: it builds a module into build/Release (or build/Debug)
    relative to its working directory, the module contains the passed arguments.

    :param directory: directory to place the script in
    :param log: file that each call is appended to ("compile <args>")
    :param fail_for: exit with 2 if this version is the target
    :param module: file name of the built module
    :param produce: build a module at all?
    """
    log = log or os.path.join(directory, "node_gyp.log")
    lines = ['echo "compile $*" >> {}'.format(shlex.quote(log))]
    if fail_for:
        lines.append('[ "$2" = "--target={}" ] && exit 2'.format(fail_for))
    lines.append("out=build/Release")
    lines.append('for arg in "$@"; do [ "$arg" = "--debug" ] && out=build/Debug; done')
    lines.append('mkdir -p "$out"')
    if produce:
        lines.append('printf "%s" "$*" > "$out/{}"'.format(module))
    lines.append("exit 0")
    return make_script(os.path.join(directory, "node-gyp"), "\n".join(lines))


def fake_strip(directory: str, log: str = None, exit_code: int = 0) -> str:
    """
    Creates a strip tool that only records its arguments ("strip <args>").
    """
    log = log or os.path.join(directory, "strip.log")
    return make_script(os.path.join(directory, "strip"),
                       'echo "strip $*" >> {}\nexit {}'.format(shlex.quote(log), exit_code))


def read_lines(file: str) -> t.List[str]:
    with open(file) as f:
        return [line.rstrip("\n") for line in f]


def read_bytes(file: str) -> bytes:
    with open(file, "rb") as f:
        return f.read()


def make_config(cwd: str, **kwargs) -> BuildConfiguration:
    """
    Creates a build configuration for a linux x64 build in the passed directory that
    isn't influenced by PREBUILD_* variables of the test environment.
    """
    options = {"arch": "x64", "platform": "linux", "cwd": cwd, "strip": False,
               "environ": {"PATH": os.environ.get("PATH", "/usr/bin:/bin")}}
    options.update(kwargs)
    return BuildConfiguration.create(**options)


class Result(NamedTuple):
    out: str
    ret_code: int
    exception: t.Optional[BaseException]


def run_prebuildify(args: str, settings: dict = None, expect_success: bool = True,
                    misc_env: t.Dict[str, str] = None) -> Result:
    """
    Run prebuildify with the passed arguments in an isolated directory

    :param args: arguments for prebuildify
    :param settings: settings dictionary, stored in a file called `settings.yaml` and passed via --settings
    :param expect_success: expect a zero return code
    :param misc_env: additional environment variables
    :return: result of the call
    """
    runner = CliRunner()
    prior = copy.deepcopy(Settings().prefs)
    try:
        with runner.isolated_filesystem():
            arg_list = shlex.split(args)
            if settings is not None:
                with open("settings.yaml", "w") as f:
                    yaml.safe_dump(settings, f)
                arg_list[1:1] = ["--settings", "settings.yaml"]
            result = runner.invoke(cli, arg_list, env=misc_env, catch_exceptions=True)
            ret = Result(result.output.strip(), result.exit_code, result.exception)
    finally:
        Settings().prefs = prior
    if expect_success:
        assert result.exit_code == 0, repr(ret)
    return ret
