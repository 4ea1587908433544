"""
Creation of click options from the settings and their type schemes, a passed option sets its setting.
"""

import logging
import sys
import warnings

import click
from click.core import ParameterSource

from prebuildify.utils.typecheck import *
from prebuildify.utils.settings import Settings, SettingsError
import typing as t


def type_scheme_option(option_name: str, type_scheme: Type, is_flag: bool = False,
                       callback: t.Callable[[click.Context, click.Parameter, t.Any], t.Any] = None,
                       short: str = None, with_default: bool = True, default = None,
                       is_eager: bool = False) -> t.Callable[[t.Callable], t.Callable]:
    """
    click.option for a type scheme: the scheme provides the click type, the help and the default.

    :param option_name: option name without the leading dashes
    :param type_scheme: scheme of the values, lists become multiple options
    :param is_flag: create a "--x/--no-x" option
    :param callback: click callback that is called after the value is validated and has to return it
    :param short: short name of the option (ignored if is_flag=True)
    :param with_default: show a default in the help
    :param default: default shown by click, the default of the type scheme is used if None
    :param is_eager: process the option before all others
    """
    has_default = with_default
    default_value = default
    if with_default and default_value is None:
        try:
            default_value = type_scheme.get_default()
        except ValueError:
            has_default = False

    def raw_type(_type: Type):
        if isinstance(_type, click.ParamType):
            return _type
        if isinstance(_type, ExactEither):
            return click.Choice(_type.exp_values)
        if isinstance(_type, T):
            return _type.native_type
        if isinstance(_type, Int):
            return int
        if isinstance(_type, Str):
            return str
        if isinstance(_type, Either):
            # command lines can only pass the alternatives click can parse
            for alternative in _type.types:
                try:
                    return raw_type(alternative)
                except ValueError:
                    pass
        raise ValueError("No click type for {} (option {})".format(type_scheme, option_name))

    def func(decorated_func):
        multiple = False
        elem_type = type_scheme
        if isinstance(elem_type, List):
            multiple = True
            elem_type = elem_type.elem_type
        option_args = {
            "callback": _chain(validate(type_scheme), callback),
            "multiple": multiple,
            "is_eager": is_eager
        }
        if has_default:
            option_args["default"] = tuple(default_value) if multiple else default_value
            option_args["show_default"] = True
        if type_scheme.description is not None:
            option_args["help"] = type_scheme.description
        if is_flag:
            option_args["is_flag"] = True
            return click.option("--{name}/--no-{name}".format(name=option_name), **option_args)(decorated_func)
        option_args["type"] = raw_type(elem_type)
        names = ["--{}".format(option_name)]
        if short is not None:
            names.append("-" + short)
        return click.option(*names, **option_args)(decorated_func)
    return func


def _chain(first: t.Callable, second: t.Optional[t.Callable]) -> t.Callable:
    if second is None:
        return first
    return lambda ctx, param, value: second(ctx, param, first(ctx, param, value))


def validate(type_scheme: Type) -> t.Callable[[click.Context, click.Parameter, t.Any], t.Any]:
    """
    Creates a click option validator function that can be passed to click via the callback parameter.

    :param type_scheme: scheme the passed values have to match
    :return: click callback
    """
    def func(ctx, param, value):
        name = param.human_readable_name.replace("-", "")
        res = verbose_isinstance(value, type_scheme, value_name=name)
        if not res:
            raise click.BadParameter(str(res))
        return value
    return func


class CmdOption:
    """
    A command line option, usually backed by a setting.
    """

    def __init__(self, option_name: str, settings_key: str = None, type_scheme: Type = None,
                 short: str = None, is_flag: bool = None, is_eager: bool = False):
        """
        Initializes an option either based on a setting (via settings key) or on a type scheme.
        If this is backed by a settings key, the setting is set when the option is passed.
        Bool() and BoolOrNone() schemes result in flags unless is_flag is False.

        :param option_name: option name without the leading dashes
        :param settings_key: key of the setting the option sets
        :param type_scheme: scheme of an option without setting
        :param short: single letter alias, flags have none
        :param is_flag: create a "--x/--no-x" option
        :param is_eager: process the option before all others
        """
        typecheck(option_name, Str())
        if (settings_key is None) == (type_scheme is None):
            raise ValueError("Pass either settings_key or type_scheme")
        self.option_name = option_name  # type: str
        """ Option name without the leading dashes """
        self.settings_key = settings_key  # type: t.Optional[str]
        """ Settings key the passed value is stored under """
        self.type_scheme = type_scheme or Settings().get_type_scheme(settings_key)  # type: Type
        """ Type scheme the passed values are checked against """
        self.short = short  # type: t.Optional[str]
        self.is_eager = is_eager  # type: bool
        self.description = (self.type_scheme.description or "").strip().split("\n")[0]  # type: str
        """ First line of the type scheme description, used as help text """
        if not self.description:
            warnings.warn("Option {} has no description".format(option_name))
        self.has_default = True  # type: bool
        """ Is there a default to show? """
        self.default = None  # type: t.Any
        """ Value shown as default in the help """
        if settings_key:
            self.default = Settings()[settings_key]
        else:
            try:
                self.default = self.type_scheme.get_default()
            except ValueError:
                self.has_default = False
        self.is_flag = is_flag is True or (is_flag is None and type(self.type_scheme) in [Bool, BoolOrNone])
        """ Is this a --x/--no-x option? """
        if self.is_flag:
            self.short = None
        self.callback = self._set_setting if settings_key else None
        """ Click callback that stores passed values in the settings """

    def _set_setting(self, ctx: click.Context, param: click.Parameter, value):
        """
        Sets the setting to the passed value, values that click only filled in as defaults are ignored,
        they would override the values from settings files.
        """
        if value is None or ctx.get_parameter_source(param.name) in [ParameterSource.DEFAULT,
                                                                      ParameterSource.DEFAULT_MAP]:
            return value
        try:
            Settings()[self.settings_key] = value
        except SettingsError as err:
            logging.error("Invalid value {val} for option --{opt}: {msg}".format(
                val=repr(value),
                opt=self.option_name,
                msg=str(err)
            ))
            sys.exit(1)
        return value

    def __lt__(self, other) -> bool:
        """
        Compare by option_name.
        """
        typecheck(other, T(CmdOption))
        return self.option_name < other.option_name

    def __str__(self) -> str:
        return self.option_name

    def __repr__(self) -> str:
        return "CmdOption({})".format(self.option_name)

    @classmethod
    def from_settings_domain(cls, settings_domain: str,
                                 exclude: t.List[str] = None, name_prefix: str = None) -> 'CmdOptionList':
        """
        Creates a list of CmdOption objects from all sub settings (in the settings domain).
        It excludes all sub settings that are either in the exclude list or of type Dict.
        The settings file options (settings and config) are eager.

        :param settings_domain: e.g. "build", "" is the root domain
        :param exclude: sub keys without option
        :param name_prefix: prefix of each option name
        :return: one option per simple setting
        """
        exclude = exclude or []
        name_prefix = name_prefix or ""
        typecheck_locals(locals(), settings_domain=Str(), exclude=List(Str()), name_prefix=Str())
        domain = Settings().type_scheme
        if settings_domain != "":
            domain = Settings().get_type_scheme(settings_domain)
        ret_list = []
        for sub_key in domain.data:
            if sub_key not in exclude and not isinstance(domain[sub_key], Dict):
                ret_list.append(CmdOption(
                    option_name=name_prefix + sub_key,
                    settings_key=settings_domain + "/" + sub_key if settings_domain != "" else sub_key,
                    is_eager=settings_domain == "" and sub_key in ["settings", "config"]
                ))
        return CmdOptionList(*ret_list)


class CmdOptionList:
    """
    Options of a command, nested lists are flattened.
    """

    def __init__(self, *options: t.Union[CmdOption, 'CmdOptionList']):
        """
        Create an instance.

        :param options: options and option lists, lists are flattened
        """
        self.options = []  # type: t.List[CmdOption]
        """ Flattened options """
        for option in options:
            self.append(option)

    def append(self, options: t.Union[CmdOption, 'CmdOptionList']) -> 'CmdOptionList':
        """
        Appends the passed CmdOptionList or CmdOption and flattens the resulting list.

        :param options: CmdOptionList or CmdOption
        :return: self
        """
        typecheck(options, T(CmdOptionList) | T(CmdOption))
        if isinstance(options, CmdOption):
            self.options.append(options)
        else:
            self.options.extend(options.options)
        return self

    def set_short(self, option_name: str, new_short: str) -> 'CmdOptionList':
        """
        Gives the option with the passed name a single letter alias.

        :raises: IndexError for unknown names
        """
        self[option_name].short = new_short
        return self

    def __getitem__(self, key: t.Union[int, str]) -> CmdOption:
        """
        Option with the passed name or at the passed index.

        :raises: IndexError for unknown names and indices
        """
        if isinstance(key, int):
            return self.options[key]
        for option in self.options:
            if option.option_name == key:
                return option
        raise IndexError("No such key {!r}".format(key))

    def __iter__(self):
        return self.options.__iter__()

    def __repr__(self) -> str:
        return repr(self.options)

    def __len__(self) -> int:
        return len(self.options)


def cmd_option(option: t.Union[CmdOption, CmdOptionList], name_prefix: str = None) \
        -> t.Callable[[t.Callable], t.Callable]:
    """
    click.option for CmdOptions.
    Lists are applied in reverse alphabetical order, so the help lists them alphabetically.

    :param option: CmdOption or list of CmdOptions
    :param name_prefix: prepended to every option name
    :return: decorator for click commands
    """
    typecheck(option, T(CmdOption) | T(CmdOptionList))
    name_prefix = name_prefix or ""
    if isinstance(option, CmdOption):
        return type_scheme_option(option_name=name_prefix + option.option_name,
                                  type_scheme=option.type_scheme,
                                  short=option.short,
                                  is_flag=option.is_flag,
                                  callback=option.callback,
                                  with_default=option.has_default,
                                  default=option.default,
                                  is_eager=option.is_eager)

    def func(f: t.Callable):
        for opt in sorted(option.options, reverse=True):
            f = cmd_option(opt, name_prefix)(f)
        return f
    return func
