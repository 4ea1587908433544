import logging
import typing as t

from ..utils.typecheck import *
from ..utils.settings import Settings
from .builder import Builder, BuildConfiguration
from .targets import KnownTargets, resolve_targets


class BuildProcessor:
    """
    Builds the prebuilds configured by the build settings (or the passed build settings).
    """

    def __init__(self, build_settings: t.Optional[t.Dict[str, t.Any]] = None,
                 known_targets: KnownTargets = None, compiler_cls = None):
        """
        Creates a build processor.

        :param build_settings: settings with the same format as the "build" settings domain,
                               missing keys have their default values
        :param known_targets: table of known targets, defaults to the bundled one
        :param compiler_cls: compiler invoker class (gets passed the build configuration)
        """
        if build_settings is None:
            build_settings = Settings()["build"]
        else:
            defaults = Settings.type_scheme["build"].get_default()
            defaults.update(build_settings)
            build_settings = defaults
        typecheck(build_settings, Settings.type_scheme["build"], "build settings")
        self.build_settings = build_settings  # type: t.Dict[str, t.Any]
        self.known_targets = known_targets or KnownTargets.default()  # type: KnownTargets
        self.compiler_cls = compiler_cls
        self.config = BuildConfiguration.create(
            arch=build_settings["arch"],
            platform=build_settings["platform"],
            strip=build_settings["strip"],
            strip_bin=build_settings["strip_bin"],
            node_gyp=build_settings["node_gyp"],
            shell=build_settings["shell"],
            cwd=build_settings["cwd"],
            debug=build_settings["debug"],
            quiet=build_settings["quiet"],
            napi=build_settings["napi"],
            preinstall=build_settings["preinstall"],
            postinstall=build_settings["postinstall"],
            artifacts=build_settings["artifacts"]
        )  # type: BuildConfiguration

    def build(self) -> t.List[str]:
        """
        Resolves the targets and builds them.

        :return: paths of the placed prebuilds
        :raises: ConfigurationError if there is nothing to build
        """
        targets = resolve_targets(self.build_settings["targets"], self.build_settings["all"],
                                  self.build_settings["napi"], self.known_targets)
        logging.info("Build for {}".format(", ".join("{}@{}".format(*target) for target in targets)))
        compiler = self.compiler_cls(self.config) if self.compiler_cls else None
        return Builder(self.config, targets, self.known_targets, compiler).build()
