import logging
import os
import queue
import typing as t
from collections import namedtuple

from ..utils.util import host_arch, host_platform, npmbin, default_shell
from .artifacts import (MODULE_EXTENSION, copy_shared_libs, find_build, pack_directory, run_hook, spawn,
                        strip)
from .errors import CompileError
from .targets import KnownTargets, Target

ELECTRON_DIST_URL = "https://atom.io/download/electron"  # type: str
""" Headers of the electron releases """


_BuildConfiguration = namedtuple("_BuildConfiguration", [
    "arch", "platform", "strip", "strip_bin", "node_gyp", "shell", "cwd", "debug", "quiet", "napi",
    "preinstall", "postinstall", "artifacts", "env", "builds", "output"
])


class BuildConfiguration(_BuildConfiguration):
    """
    Configuration of a whole prebuildify run. Create it via `create`, it isn't modified afterwards.

    - builds: destination directory of the prebuilds (<cwd>/prebuilds/<platform>-<arch>)
    - output: directory the compiler invoker builds into (<cwd>/build/<Debug|Release>)
    - env: environment of all child processes, contains the configuration as PREBUILD_* variables
    """

    __slots__ = ()

    @classmethod
    def create(cls, arch: str = None, platform: str = None, strip: t.Optional[bool] = None,
               strip_bin: str = None, node_gyp: str = None, shell: str = None, cwd: str = ".",
               debug: bool = False, quiet: bool = False, napi: bool = False, preinstall: str = None,
               postinstall: str = None, artifacts: str = None,
               environ: t.Dict[str, str] = None) -> 'BuildConfiguration':
        """
        Creates a configuration, options that aren't set (None or "") are taken from the
        PREBUILD_* environment variables or default to values suited for the host.

        :param environ: environment to base on, defaults to os.environ
        """
        environ = dict(os.environ if environ is None else environ)
        arch = arch or environ.get("PREBUILD_ARCH") or host_arch()
        platform = platform or environ.get("PREBUILD_PLATFORM") or host_platform()
        strip = strip if strip is not None else environ.get("PREBUILD_STRIP") == "1"
        strip_bin = strip_bin or environ.get("PREBUILD_STRIP_BIN") or "strip"
        node_gyp = node_gyp or environ.get("PREBUILD_NODE_GYP") or npmbin("node-gyp")
        shell = shell or environ.get("PREBUILD_SHELL") or default_shell()
        cwd = cwd or "."

        env = environ
        env.update({
            "PREBUILD_ARCH": arch,
            "PREBUILD_PLATFORM": platform,
            "PREBUILD_STRIP": "1" if strip else "0",
            "PREBUILD_STRIP_BIN": strip_bin,
            "PREBUILD_NODE_GYP": node_gyp,
        })
        if shell:
            env["PREBUILD_SHELL"] = shell
        if arch == "ia32" and platform == "linux" and arch != host_arch():
            env["CFLAGS"] = "-m32"

        return cls(arch=arch, platform=platform, strip=strip, strip_bin=strip_bin, node_gyp=node_gyp,
                   shell=shell, cwd=cwd, debug=debug, quiet=quiet, napi=napi,
                   preinstall=preinstall or None, postinstall=postinstall or None, artifacts=artifacts or None,
                   env=env,
                   builds=os.path.join(cwd, "prebuilds", platform + "-" + arch),
                   output=os.path.join(cwd, "build", "Debug" if debug else "Release"))


class NodeGyp:
    """
    Compiler invoker that builds a module with node-gyp.
    """

    def __init__(self, config: BuildConfiguration):
        self.config = config

    def args(self, target: Target) -> t.List[str]:
        """ Command line arguments of node-gyp for the passed target """
        args = ["rebuild", "--target=" + target.version]
        if self.config.arch:
            args.append("--target_arch=" + self.config.arch)
        if target.runtime == "electron":
            args.append("--runtime=electron")
            args.append("--dist-url=" + ELECTRON_DIST_URL)
        args.append("--debug" if self.config.debug else "--release")
        return args

    def compile(self, target: Target) -> str:
        """
        Builds the module for the passed target.

        :return: path of the built module
        :raises: CompileError if node-gyp fails
        :raises: NotFoundError if node-gyp didn't produce a module
        """
        spawn([self.config.node_gyp] + self.args(target), "node-gyp", CompileError, cwd=self.config.cwd,
              env=self.config.env, quiet=self.config.quiet)
        return find_build(self.config.output)


class Builder:
    """
    Builds the module for several targets, one after another, and places the results
    in the prebuilds directory.
    """

    def __init__(self, config: BuildConfiguration, targets: t.List[Target], known_targets: KnownTargets = None,
                 compiler = None, packer: t.Callable[[str, str], None] = pack_directory):
        """
        Creates a new builder.

        :param config: configuration of the run
        :param targets: targets to build for in this order
        :param known_targets: table used for the ABI lookup, defaults to the bundled one
        :param compiler: object with a compile(target) -> module path method, defaults to NodeGyp
        :param packer: copies the artifacts directory into the prebuilds directory
        """
        self.config = config  # type: BuildConfiguration
        self.submit_queue = queue.Queue()  # type: queue.Queue
        """ Targets that aren't built yet """
        for target in targets:
            self.submit_queue.put(target)
        self.known_targets = known_targets  # type: t.Optional[KnownTargets]
        self.compiler = compiler or NodeGyp(config)
        self.packer = packer

    def build(self) -> t.List[str]:
        """
        Builds all targets and aborts with the first error.

        :return: paths of the placed prebuilds
        """
        os.makedirs(self.config.builds, exist_ok=True)
        placed = []
        while True:
            try:
                target = self.submit_queue.get_nowait()  # type: Target
            except queue.Empty:
                break
            placed.append(self.build_target(target))
        if self.config.artifacts:
            self.packer(self.config.artifacts, self.config.builds)
        logging.info("Finished building")
        return placed

    def build_target(self, target: Target) -> str:
        """
        Builds a single target and moves the module into the prebuilds directory.

        :return: path of the placed prebuild
        """
        logging.info("Building {}@{} for {}-{}".format(target.runtime, target.version, self.config.platform,
                                                        self.config.arch))
        run_hook(self.config.preinstall, self.config)
        filename = self.compiler.compile(target)
        strip(filename, self.config)
        run_hook(self.config.postinstall, self.config)
        copy_shared_libs(self.config.output, self.config.builds, self.config)
        dest = os.path.join(self.config.builds, self.prebuild_name(target))
        os.replace(filename, dest)
        logging.info("Created {}".format(dest))
        return dest

    def prebuild_name(self, target: Target) -> str:
        """
        File name of the prebuild for the passed target: <runtime>-<abi or "napi">.node
        """
        if self.config.napi:
            abi = "napi"
        else:
            if self.known_targets is None:
                self.known_targets = KnownTargets.default()
            abi = self.known_targets.abi(target.version, target.runtime)
        return "{}-{}{}".format(target.runtime, abi, MODULE_EXTENSION)
