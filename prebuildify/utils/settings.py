import copy
import logging
import os
import typing as t

import click
import yaml

from prebuildify.utils.typecheck import *
from prebuildify.utils.util import recursive_exec_for_leafs, Singleton


class SettingsError(ValueError):
    """ Raised for unknown settings keys, invalid values and unreadable settings files """
    pass


class Settings(metaclass=Singleton):
    """
    Manages the Settings.
    The settings keys and sub keys are combined by a slash, e.g. "build/arch".

    Empty strings (and None for strip) mean "not set", the build configuration then
    falls back to the PREBUILD_* environment variables and the host defaults.
    """

    config_file_name = "prebuildify.yaml"  # type: str
    """ Name of the settings file looked up in the current directory """
    type_scheme = Dict({
        "settings": Str() // Default("") // Description("Additional settings file"),
        "config": Str() // Default("") // Description("Alias for settings"),
        "log_level": ExactEither("debug", "info", "warn", "error", "quiet") // Default("info")
                     // Description("Logging level"),
        "build": Dict({
            "arch": Str() // Default("")
                    // Description("Target architecture (default: $PREBUILD_ARCH or the host architecture)"),
            "platform": Str() // Default("")
                        // Description("Target platform (default: $PREBUILD_PLATFORM or the host platform)"),
            "strip": BoolOrNone() // Default(None)
                     // Description("Strip debug symbols from the builds (default: $PREBUILD_STRIP == 1)"),
            "strip_bin": Str() // Default("")
                         // Description("Strip tool (default: $PREBUILD_STRIP_BIN or strip)"),
            "node_gyp": Str() // Default("")
                        // Description("Compiler invoker (default: $PREBUILD_NODE_GYP or node-gyp)"),
            "shell": Str() // Default("")
                     // Description("Shell for the pre and post build hooks (default: $PREBUILD_SHELL)"),
            "cwd": Str() // Default(".") // Description("Directory of the module to build"),
            "targets": ListOrTuple(TargetSpec() | Dict({"runtime": Str(), "version": Str()})) // Default([])
                       // Description("Targets to build for, format: [runtime@]version\n"
                                      "(settings files also accept {runtime: ..., version: ...} mappings)"),
            "all": Bool() // Default(False) // Description("Build for all known targets"),
            "napi": Bool() // Default(False)
                    // Description("Build a napi module, builds for the latest node and electron "
                                   "if no targets are given"),
            "debug": Bool() // Default(False) // Description("Make a debug build"),
            "quiet": Bool() // Default(False) // Description("Suppress the output of the compiler"),
            "preinstall": Str() // Default("") // Description("Command run before each build"),
            "postinstall": Str() // Default("") // Description("Command run after each build"),
            "artifacts": Str() // Default("")
                         // Description("Directory that is copied into the prebuilds directory after building"),
        })
    })  # type: Dict
    """ Keys, types, defaults and descriptions of all settings """

    def __init__(self):
        """
        Initializes a Settings singleton object with the default settings.

        :raises: SettingsError if the default settings aren't in the format described via the type_scheme
        """
        self.prefs = copy.deepcopy(self.type_scheme.get_default())  # type: t.Dict[str, t.Any]
        """ The current settings """
        res = self._validate_settings_dict(self.prefs, "default settings")
        if not res:
            raise SettingsError(str(res))
        self._setup()

    def load_files(self):
        """ Loads the configuration files from the config and the current directory """
        self.load_from_config_dir()
        self.load_from_current_dir()
        self._setup()

    def _setup(self):
        """
        Applies the log level.
        """
        mapping = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warn": logging.WARNING,
            "error": logging.ERROR,
            "quiet": logging.CRITICAL + 1
        }
        logging.getLogger().setLevel(mapping[self.prefs["log_level"]])

    def reset(self):
        """
        Drops all loaded and set values.
        """
        self.prefs = copy.deepcopy(self.type_scheme.get_default())
        self._setup()

    def _validate_settings_dict(self, data: t.Dict[str, t.Any], description: str = None):
        """
        Checks the nested settings against the type scheme.

        :param data: nested settings
        :param description: origin of the settings, used in the error message
        :return: InfoMsg that is falsy and carries the error message if the settings are invalid
        """
        return verbose_isinstance(data, self.type_scheme, description or "Settings")

    def load_file(self, file: str):
        """
        Loads the configuration from the passed YAML file, on top of the current settings.

        :param file: YAML file
        :raises: SettingsError if the file can.t be read or contains invalid settings
        """
        tmp = copy.deepcopy(self.prefs)
        try:
            with open(file, "r") as stream:
                data = yaml.safe_load(stream) or {}
        except (yaml.YAMLError, IOError) as err:
            raise SettingsError(str(err))
        self._load_dict(data, tmp, "settings with ones from file '{}'".format(file))

    def load_from_dict(self, config_dict: t.Dict[str, t.Any]):
        """
        Load the configuration from the passed dictionary, on top of the current settings.

        :param config_dict: nested settings, e.g. {"build": {"arch": "x64"}}
        """
        self._load_dict(config_dict, copy.deepcopy(self.prefs), "settings with ones from a config dict")

    def _load_dict(self, data: t.Dict[str, t.Any], prior: t.Dict[str, t.Any], description: str):
        if not isinstance(data, dict):
            raise SettingsError("{}: expected a mapping, got {!r}".format(description, data))

        def func(key, path, value):
            self._set(path, value)

        try:
            recursive_exec_for_leafs(data, func)
        except SettingsError:
            self.prefs = prior
            raise
        res = self._validate_settings_dict(self.prefs, description)
        if not res:
            self.prefs = prior
            raise SettingsError(str(res))
        self._setup()

    def load_from_config_dir(self):
        """
        Loads config.yaml from the prebuildify application directory (e.g. ~/.config/prebuildify) if there is one.
        """
        conf = os.path.join(click.get_app_dir("prebuildify"), "config.yaml")
        if os.path.exists(conf) and os.path.isfile(conf):
            self.load_file(conf)

    def load_from_current_dir(self):
        """
        Load the configuration from the configuration file in the current working directory if it exists.
        """
        if os.path.exists(self.config_file_name) and os.path.isfile(self.config_file_name):
            self.load_file(self.config_file_name)

    def get(self, key: str) -> t.Any:
        """
        Value of a setting, nested settings are returned as dictionaries.

        :param key: key like "build/arch"
        :raises: SettingsError for unknown keys
        """
        path = key.split("/")
        if not self.validate_key_path(path):
            raise SettingsError("No such setting {}".format(key))
        data = self.prefs
        for sub in path:
            data = data[sub]
        return data

    def __getitem__(self, key: str) -> t.Any:
        """
        Same as get(key).
        """
        return self.get(key)

    def _set(self, path: t.List[str], value):
        """
        Sets a value without validating the resulting settings.

        :param path: key split at "/"
        :param value: new value
        :raises: SettingsError for unknown keys
        """
        if not self.validate_key_path(path):
            raise SettingsError("No such setting {}".format("/".join(path)))
        if isinstance(value, tuple):
            value = list(value)
        tmp_pref = self.prefs
        for key in path[0:-1]:
            tmp_pref = tmp_pref[key]
        tmp_pref[path[-1]] = value
        if (path == ["config"] or path == ["settings"]) and value != "":
            self.load_file(value)

    def set(self, key: str, value, validate: bool = True):
        """
        Sets a setting, setting "settings" or "config" loads the named file.

        :param key: settings key
        :param value: new value
        :param validate: check all settings afterwards and undo the change if they are invalid
        :raises: SettingsError for unknown keys and invalid values
        """
        tmp = copy.deepcopy(self.prefs)
        self._set(key.split("/"), value)
        if validate:
            res = self._validate_settings_dict(self.prefs, "settings with new setting ({}={!r})".format(key, value))
            if not res:
                self.prefs = tmp
                raise SettingsError(str(res))
        self._setup()

    def __setitem__(self, key: str, value):
        """
        Same as set(key, value).
        """
        self.set(key, value)

    def validate_key_path(self, path: t.List[str]) -> bool:
        """
        Does the key path lead to a setting or settings domain?

        :param path: key split at "/"
        """
        tmp = self.prefs
        for item in path:
            if not isinstance(tmp, dict) or item not in tmp:
                return False
            tmp = tmp[item]
        return True

    def has_key(self, key: str) -> bool:
        """ Is there a setting with this key? """
        return self.validate_key_path(key.split("/"))

    def get_type_scheme(self, key: str) -> Type:
        """
        Type scheme of a setting (or of a settings domain).

        :param key: given key
        :return: type scheme
        :raises: SettingsError for unknown keys
        """
        if not self.validate_key_path(key.split("/")):
            raise SettingsError("No such setting {}".format(key))
        tmp_typ = self.type_scheme
        for subkey in key.split("/"):
            tmp_typ = tmp_typ[subkey]
        return tmp_typ

    def store_into_file(self, file_name: str):
        """
        Writes the current settings as YAML, each setting is preceded by its description.

        :param file_name: file to write
        """
        with open(file_name, "w") as f:
            print(self.type_scheme.get_default_yaml(defaults=self.prefs), file=f)
