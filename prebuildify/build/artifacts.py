"""
Handling of the files a build produces: finding the built module, stripping it,
collecting the shared libraries that were built alongside and copying directory trees.
"""

import logging
import os
import re
import shutil
import subprocess
import typing as t

from ..utils.util import on_apple_os, on_linux, shell_command
from .errors import HookError, NotFoundError, SpawnError, StripError

MODULE_EXTENSION = ".node"  # type: str
""" File extension of native node modules """

_module_re = re.compile(r"\.node$", re.IGNORECASE)

SHARED_LIB_PATTERNS = [
    re.compile(r"\.dylib$"),
    re.compile(r"\.so(\.\d+)?$"),
    re.compile(r"\.dll$")
]  # type: t.List[t.Pattern]
""" Shared library names on macOS, Linux and Windows, all are checked to support cross compilation """


def spawn(args: t.List[str], name: str, error_cls: t.Type[SpawnError] = SpawnError, cwd: str = None,
          env: t.Dict[str, str] = None, quiet: bool = False):
    """
    Runs a child process to completion.

    :param args: program and its arguments
    :param name: name of the program used in the error message
    :param error_cls: error raised on a non zero exit code
    :param cwd: working directory
    :param env: environment variables
    :param quiet: discard the standard in, out and error of the child instead of inheriting them
    :raises: error_cls if the child exits with a non zero exit code
    """
    logging.debug("Run {!r}".format(args))
    stdio = subprocess.DEVNULL if quiet else None
    proc = subprocess.Popen(args, cwd=cwd, env=env, stdin=stdio, stdout=stdio, stderr=stdio)
    code = proc.wait()
    if code:
        raise error_cls(name, code)


def run_hook(cmd: str, config: 'BuildConfiguration'):
    """
    Runs a pre or post build command (if there is one) in the configured shell with the
    environment of the build.

    :raises: HookError if the command fails
    """
    if not cmd:
        return
    logging.info("Run {!r}".format(cmd))
    spawn(shell_command(cmd, config.shell), cmd, HookError, cwd=config.cwd, env=config.env)


def find_build(directory: str) -> str:
    """
    Returns the path of the first (by name) native module in the passed directory.

    :raises: NotFoundError if the directory can't be read or doesn't contain a module
    """
    try:
        files = sorted(os.listdir(directory))
    except OSError:
        raise NotFoundError(directory)
    files = [name for name in files if _module_re.search(name)]
    if not files:
        raise NotFoundError(directory)
    return os.path.join(directory, files[0])


def strip(file: str, config: 'BuildConfiguration'):
    """
    Strips the debug symbols from the passed binary in place, if stripping is enabled
    and the host is a Linux or macOS system.

    :raises: StripError if the strip tool fails
    """
    if not config.strip or not (on_apple_os() or on_linux()):
        return
    args = [file, "-Sx"] if on_apple_os() else [file, "--strip-all"]
    spawn([config.strip_bin] + args, config.strip_bin, StripError, quiet=True)


def is_shared_lib(name: str) -> bool:
    return any(pattern.search(name) for pattern in SHARED_LIB_PATTERNS)


def copy_shared_libs(output: str, builds: str, config: 'BuildConfiguration') -> t.List[str]:
    """
    Strips and copies the shared libraries in the output directory into the builds directory.
    An output directory that can't be read contains no shared libraries.

    :param output: directory the compiler invoker builds into
    :param builds: destination directory
    :param config: used build configuration
    :return: paths of the copied libraries
    """
    try:
        files = sorted(os.listdir(output))
    except OSError:
        return []
    copied = []
    for name in filter(is_shared_lib, files):
        strip(os.path.join(output, name), config)
        dest = os.path.join(builds, name)
        copy(os.path.join(output, name), dest)
        logging.info("Copied shared library {}".format(name))
        copied.append(dest)
    return copied


def copy(src: str, dest: str):
    """
    Copies the content and the permission bits of a file, overwriting the destination.
    """
    shutil.copyfile(src, dest)
    shutil.copymode(src, dest)


def pack_directory(src: str, dest: str):
    """
    Merges the directory tree src into dest, existing files are overwritten.
    """
    logging.info("Copy {} into {}".format(src, dest))
    shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)
