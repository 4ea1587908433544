"""
Errors raised while building the prebuilds.

Every build step raises its first error and nothing is retried or rolled back,
prebuilds placed for earlier targets stay in place.
"""


class PrebuildError(Exception):
    """ Base class of all errors that abort a prebuildify run """
    pass


class ConfigurationError(PrebuildError, ValueError):
    """ The configuration doesn't describe anything to build (e.g. no targets) """
    pass


class SpawnError(PrebuildError):
    """
    A child process exited with a non zero exit code.
    """

    def __init__(self, name: str, code: int):
        """
        :param name: name of the executed program or command
        :param code: exit code of the child process
        """
        super().__init__("{} exited with {}".format(name, code))
        self.name = name
        self.code = code


class HookError(SpawnError):
    """ The pre or post build command failed """
    pass


class CompileError(SpawnError):
    """ The compiler invoker (node-gyp) failed """
    pass


class StripError(SpawnError):
    """ The strip tool failed """
    pass


class NotFoundError(PrebuildError):
    """
    The compiler invoker succeeded but didn't produce a module in the output directory.
    """

    def __init__(self, directory: str):
        super().__init__("Could not find build in {}".format(directory))
        self.directory = directory


class AbiLookupError(PrebuildError):
    """
    The ABI of a target isn't known.
    """

    def __init__(self, version: str, runtime: str):
        super().__init__("Could not detect abi for version {} and runtime {}. Updating the table of known "
                         "targets might help if it is a new release of {}".format(version, runtime, runtime))
        self.version = version
        self.runtime = runtime
