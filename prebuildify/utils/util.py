"""
Utility functions and classes that don't depend on the rest of the prebuildify code base.
"""

import logging
import platform
import sys
import typing as t

from rainbow_logging_handler import RainbowLoggingHandler


def recursive_exec_for_leafs(data: dict, func, _path_prep = []):
    """
    Executes the function for every leaf key (a key without any sub keys) of the data dict tree.

    :param data: dict tree
    :param func: function that gets passed the leaf key, the key path and the actual value
    """
    if not isinstance(data, dict):
        return
    for subkey in data.keys():
        if type(data[subkey]) is dict:
            recursive_exec_for_leafs(data[subkey], func, _path_prep=_path_prep + [subkey])
        else:
            func(subkey, _path_prep + [subkey], data[subkey])


def on_apple_os() -> bool:
    """ Is the current operating system an apple OS X? """
    return sys.platform == 'darwin'


def on_linux() -> bool:
    return sys.platform.startswith("linux")


def on_windows() -> bool:
    return sys.platform in ["win32", "cygwin"]


_arch_names = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64",
    "s390x": "s390x",
}


def host_arch() -> str:
    """
    Architecture of the host in the naming scheme of node (x64, ia32, arm64, arm, ...)
    """
    machine = platform.machine().lower()
    return _arch_names.get(machine, machine)


def host_platform() -> str:
    """
    Operating system of the host in the naming scheme of node (linux, darwin, win32, freebsd, ...)
    """
    if hasattr(sys, "getandroidapilevel"):
        return "android"
    for prefix in ["linux", "freebsd", "openbsd", "sunos", "aix"]:
        if sys.platform.startswith(prefix):
            return prefix
    if on_windows():
        return "win32"
    return sys.platform


def npmbin(name: str) -> str:
    """ Name of an executable installed by npm, it's a batch file wrapper on Windows """
    return name + ".cmd" if host_platform() == "win32" else name


def default_shell() -> t.Optional[str]:
    """ Shell for the hook commands if none is configured, None uses the platform default """
    return "sh" if host_platform() == "android" else None


def shell_command(cmd: str, shell: t.Optional[str] = None) -> t.List[str]:
    """
    Arguments to execute the passed command line in the passed shell (or the platform default).
    """
    if shell:
        return [shell, "-c", cmd]
    if on_windows():
        return ["cmd", "/c", cmd]
    return ["/bin/sh", "-c", cmd]


class Singleton(type):
    """
    Singleton meta class.
    @see http://stackoverflow.com/a/6798042
    """
    _instances = {}
    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super(Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


# setup `RainbowLoggingHandler`
handler = RainbowLoggingHandler(sys.stderr, color_funcName=('black', 'yellow', True))
""" Colored logging handler that is used for the root logger """
handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s"))
logging.getLogger().addHandler(handler)
