"""
Type schemes for checking nested values that come directly from the user,
e.g. the settings files or the command line.

Type instances work with the standard isinstance function::

    isinstance(["node@12.0.0"], List(TargetSpec()))

They can be combined with "|" (producing Either(one, other)) and annotated
with "//"::

    Str() // Default("x64") // Description("Target architecture")

`verbose_isinstance` returns a message object that explains why a value
doesn't match, `typecheck` raises a TypeError with this message.
"""

import re
import typing as t

import click
import yaml

__all__ = [
    "Type",
    "ExactEither",
    "T",
    "Any",
    "Int",
    "NonExistent",
    "Bool",
    "BoolOrNone",
    "Str",
    "TargetSpec",

    "Info",
    "Description",
    "Default",

    "Either",
    "List",
    "ListOrTuple",
    "Dict",
    "verbose_isinstance",
    "typecheck",
    "typecheck_locals"
]


class ConstraintError(ValueError):
    """
    Error raised if a type scheme is constructed from something that isn't a type scheme.
    """
    pass


class Info:
    """
    Collects the name of the examined value and the path into it to produce readable error messages.
    """

    def __init__(self, value_name: str = None, value = None, _app_str: str = None):
        """
        Creates a new info object.

        :param value_name: name of the value that is type checked
        :param value: value that is type checked
        """
        self.value_name = value_name  # type: t.Optional[str]
        """ Name of the checked value """
        self._app_str = _app_str or ""  # type: str
        if value_name is None:
            self._value_name = "value {{!r}}{}".format(self._app_str)
        else:
            self._value_name = "{}{} of value {{!r}}".format(self.value_name, self._app_str)
        self.value = value
        """ Checked value """
        self.has_value = value is not None  # type: bool

    def set_value(self, value):
        self.value = value
        self.has_value = True

    def add_to_name(self, app_str: str) -> 'Info':
        """
        Creates an info object for a part of the checked value, e.g. "[3]" for the fourth list element.
        """
        return Info(self.value_name, self.value, self._app_str + app_str)

    def errormsg(self, constraint: 'Type', msg: str = None) -> 'InfoMsg':
        """
        Creates a failure message.

        :param constraint: the type that isn't matched
        :param msg: optional explanation
        """
        return InfoMsg("{} hasn't the expected type {}: {}".format(self._value_name.format(self.value),
                                                                    constraint, msg or ""))

    def errormsg_cond(self, cond: bool, constraint: 'Type', msg: str = None) -> 'InfoMsg':
        return InfoMsg(True) if cond else self.errormsg(constraint, msg)

    def errormsg_non_existent(self, constraint: 'Type') -> 'InfoMsg':
        return InfoMsg("{} is non existent, expected value of type {}".format(
            self._value_name.format(self.value), constraint))

    def wrap(self, result: bool) -> 'InfoMsg':
        return InfoMsg(result)


class NoInfo(Info):
    """
    Info object for plain isinstance calls, that doesn't bother building messages.
    """

    def __init__(self):
        super().__init__()
        self.has_value = True

    def set_value(self, value):
        pass

    def add_to_name(self, app_str: str) -> 'NoInfo':
        return self

    def errormsg(self, constraint: 'Type', msg: str = None) -> 'InfoMsg':
        return InfoMsg(False)

    def errormsg_cond(self, cond: bool, constraint: 'Type', msg: str = None) -> 'InfoMsg':
        return InfoMsg(cond)

    def errormsg_non_existent(self, constraint: 'Type') -> 'InfoMsg':
        return InfoMsg(False)


class InfoMsg:
    """
    Result of a type check: truthy on success, carries the error message otherwise.
    """

    def __init__(self, msg_or_bool: t.Union[str, bool]):
        self.success = msg_or_bool is True  # type: bool
        self.msg = msg_or_bool if isinstance(msg_or_bool, str) else str(self.success)  # type: str

    def __str__(self) -> str:
        return self.msg

    def __bool__(self) -> bool:
        return self.success


class Description:
    """
    Description annotation, usage: ``Int() // Description("Number of jobs")``
    """

    def __init__(self, description: str):
        typecheck(description, str)
        self.description = description

    def __str__(self) -> str:
        return self.description


class Default:
    """
    Default value annotation, usage: ``Str() // Default("strip")``.
    The defaults of all keys of a Dict are combined by Dict.get_default().
    """

    def __init__(self, default):
        self.default = default


class Type(object):
    """
    Base class of all type schemes.
    """

    def __init__(self):
        self.description = None  # type: t.Optional[str]
        """ Description of this type instance """
        self.default = None  # type: t.Optional[Default]
        """ Default value of this type instance """

    def __instancecheck__(self, value, info: Info = NoInfo()) -> InfoMsg:
        if not info.has_value:
            info.set_value(value)
        return self._instancecheck_impl(value, info)

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.wrap(False)

    def __str__(self) -> str:
        return "Type()"

    def _validate_types(self, *types: 'Type'):
        for typ in types:
            if not isinstance(typ, Type):
                raise ConstraintError("{} is not an instance of a Type subclass".format(typ))

    def __or__(self, other: 'Type') -> 'Type':
        return Either(self, other)

    def __floordiv__(self, other: t.Union[str, Description, Default]) -> 'Type':
        """
        Annotates this type with a description (str or Description) or a default value,
        the default value has to match this type.
        """
        if isinstance(other, str) or isinstance(other, Description):
            self.description = str(other)
            return self
        if isinstance(other, Default):
            self.default = other
            typecheck(self.default.default, self)
            return self
        raise ConstraintError("{!r} is neither a description nor a default value".format(other))

    def __eq__(self, other) -> bool:
        return type(other) == type(self) and self._eq_impl(other)

    def _eq_impl(self, other: 'Type') -> bool:
        return False

    def get_default(self) -> t.Any:
        """
        :raises: ValueError if this type has no default value
        """
        if self.default is None:
            raise ValueError("{} has no default value.".format(self))
        return self.default.default

    def has_default(self) -> bool:
        return self.default is not None

    def get_default_yaml(self, indents: int = 0, indentation: int = 4, str_list: bool = False, defaults = None) \
            -> t.Union[str, t.List[str]]:
        """
        Produces YAML for the default value (or the passed defaults).

        :param indents: number of indents in front of each line
        :param indentation: width of an indent
        :param str_list: return the list of lines?
        :param defaults: value to use instead of the default value
        """
        if defaults is None:
            defaults = self.get_default()
        i_str = " " * indents * indentation
        y_str = yaml.safe_dump(defaults, default_flow_style=None).strip()
        if y_str.endswith("\n..."):
            y_str = y_str[0:-4]
        strs = [i_str + line for line in y_str.split("\n")]
        return strs if str_list else "\n".join(strs)


class Either(Type):
    """
    Checks for the value to match one of several types.
    """

    def __init__(self, *types: Type):
        super().__init__()
        self._validate_types(*types)
        self.types = list(types)  # type: t.List[Type]

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        for typ in self.types:
            if typ.__instancecheck__(value, info):
                return info.wrap(True)
        return info.errormsg(self)

    def __str__(self):
        return "Either({})".format("|".join(str(typ) for typ in self.types))

    def _eq_impl(self, other: 'Either') -> bool:
        return other.types == self.types

    def __or__(self, other) -> 'Either':
        if isinstance(other, Either):
            self.types += other.types
        else:
            self.types.append(other)
        return self


class ExactEither(Type):
    """
    Checks for the value to be one of several values.
    """

    def __init__(self, *exp_values):
        super().__init__()
        self.exp_values = list(exp_values)

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(value in self.exp_values, self)

    def __str__(self) -> str:
        return "ExactEither({})".format("|".join(repr(val) for val in self.exp_values))

    def _eq_impl(self, other: 'ExactEither') -> bool:
        return other.exp_values == self.exp_values


class Any(Type):
    """
    Matches everything.
    """

    def __instancecheck__(self, value, info: Info = NoInfo()) -> InfoMsg:
        return info.wrap(True)

    def __str__(self) -> str:
        return "Any"

    def _eq_impl(self, other: 'Any') -> bool:
        return True


class T(Type):
    """
    Wraps a native type.
    """

    def __init__(self, native_type: type):
        super().__init__()
        if not isinstance(native_type, type):
            raise ConstraintError("{} is not a native type".format(native_type))
        self.native_type = native_type

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(isinstance(value, self.native_type), self)

    def __str__(self) -> str:
        return "T({})".format(self.native_type.__name__)

    def _eq_impl(self, other: 'T'):
        return other.native_type == self.native_type


class List(Type):
    """
    A list whose elements have the passed type.
    """

    def __init__(self, elem_type: Type = Any()):
        super().__init__()
        self._validate_types(elem_type)
        self.elem_type = elem_type

    def _check_elements(self, value, info: Info) -> InfoMsg:
        for (i, elem) in enumerate(value):
            res = self.elem_type.__instancecheck__(elem, info.add_to_name("[{}]".format(i)))
            if not res:
                return res
        return info.wrap(True)

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        if not isinstance(value, list):
            return info.errormsg(self)
        return self._check_elements(value, info)

    def __str__(self) -> str:
        return "List({})".format(self.elem_type)

    def _eq_impl(self, other: 'List') -> bool:
        return other.elem_type == self.elem_type


class ListOrTuple(List):
    """
    A list or tuple whose elements have the passed type (click passes multiple options as tuples).
    """

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        if not isinstance(value, (list, tuple)):
            return info.errormsg(self)
        return self._check_elements(value, info)

    def __str__(self) -> str:
        return "ListOrTuple({})".format(self.elem_type)


class _NonExistentVal(object):

    def __repr__(self) -> str:
        return "<non existent>"


_non_existent_val = _NonExistentVal()


class NonExistent(Type):
    """
    Allows a key of a Dict to be missing.
    """

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(value is _non_existent_val, self)

    def __str__(self) -> str:
        return "non existent"

    def _eq_impl(self, other: 'NonExistent') -> bool:
        return True


class Dict(Type):
    """
    A dictionary with expected keys whose values have the associated types.
    """

    def __init__(self, data: t.Dict[t.Any, Type] = None, unknown_keys: bool = False, key_type: Type = Any(),
                 value_type: Type = Any()):
        """
        Creates a new instance.

        :param data: expected keys with the types of their values
        :param unknown_keys: allow keys that aren't in data?
        :param key_type: type of all keys
        :param value_type: type of all values
        """
        super().__init__()
        self.data = data or {}  # type: t.Dict[t.Any, Type]
        self._validate_types(*self.data.values())
        self._validate_types(key_type, value_type)
        self.unknown_keys = unknown_keys
        self.key_type = key_type
        self.value_type = value_type

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        if not isinstance(value, dict):
            return info.errormsg(self)
        for key in self.data:
            key_info = info.add_to_name("[{!r}]".format(key))
            if key in value:
                res = self.data[key].__instancecheck__(value[key], key_info)
                if not res:
                    return res
            elif not self.data[key].__instancecheck__(_non_existent_val, key_info):
                return key_info.errormsg_non_existent(self)
        for key in value:
            res = self.key_type.__instancecheck__(key, info.add_to_name("(key={!r})".format(key)))
            if not res:
                return res
            res = self.value_type.__instancecheck__(value[key], info.add_to_name("[{!r}]".format(key)))
            if not res:
                return res
        if not self.unknown_keys:
            unknown = [key for key in value if key not in self.data]
            if unknown:
                return info.errormsg(self, "unknown keys {}".format(", ".join(repr(key) for key in unknown)))
        return info.wrap(True)

    def __str__(self) -> str:
        return "Dict({{{}}}, unknown_keys={})".format(
            ", ".join("{!r}: {}".format(key, self.data[key]) for key in self.data), self.unknown_keys)

    def __getitem__(self, key) -> Type:
        if key in self.data:
            return self.data[key]
        if self.unknown_keys:
            return self.value_type
        return NonExistent()

    def _eq_impl(self, other: 'Dict') -> bool:
        return self.data == other.data and self.unknown_keys == other.unknown_keys

    def get_default(self) -> dict:
        default_dict = dict(self.default.default) if self.default is not None else {}
        for key in self.data:
            if key not in default_dict and self.data[key].has_default():
                default_dict[key] = self.data[key].get_default()
        return default_dict

    def has_default(self) -> bool:
        return True

    def get_default_yaml(self, indents: int = 0, indentation: int = 4, str_list: bool = False, defaults = None) \
            -> t.Union[str, t.List[str]]:
        """
        Produces a commented YAML document with the default values (or the passed defaults),
        simple keys come before nested dictionaries.
        """
        if defaults is None:
            defaults = self.get_default()
        simple = sorted(key for key in self.data if not isinstance(self.data[key], Dict))
        nested = sorted(key for key in self.data if isinstance(self.data[key], Dict))
        strs = []
        for key in simple + nested:
            if key not in defaults:
                continue
            strs.append("")
            if self.data[key].description is not None:
                strs.extend("# " + line for line in self.data[key].description.split("\n"))
            value_lines = self.data[key].get_default_yaml(1, indentation, str_list=True, defaults=defaults[key])
            if isinstance(self.data[key], Dict) or len(value_lines) > 1:
                strs.append("{}:".format(key))
                strs.extend(value_lines)
            else:
                strs.append("{}: {}".format(key, value_lines[0].strip()))
        i_str = " " * indents * indentation
        ret_strs = [i_str + line for line in strs]
        return ret_strs if str_list else "\n".join(ret_strs)


class Int(Type):
    """
    An int, bools aren't ints here.
    """

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(isinstance(value, int) and not isinstance(value, bool), self)

    def __str__(self) -> str:
        return "Int()"

    def _eq_impl(self, other: 'Int') -> bool:
        return True


class Str(Type):
    """
    A string.
    """

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(isinstance(value, str), self)

    def __str__(self) -> str:
        return "Str()"

    def _eq_impl(self, other: 'Str') -> bool:
        return True


_target_spec_re = re.compile(r"^([A-Za-z][\w-]*@)?v?\d+(\.\d+)*(-[\w.]+)?$")


class TargetSpec(Str, click.ParamType):
    """
    A build target of the form "[runtime@]version", e.g. "12.4.0" or "electron@v8.0.0".
    """

    name = "target"  # type: str
    """ click.ParamType name, that makes this class usable as a click type """

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        cond = isinstance(value, str) and _target_spec_re.match(value) is not None
        return info.errormsg_cond(cond, self, "expected [runtime@]version")

    def convert(self, value, param, ctx: click.Context) -> str:
        if isinstance(value, self):
            return value
        self.fail("{!r} is no valid target, expected [runtime@]version".format(value), param, ctx)

    def __str__(self) -> str:
        return "TargetSpec()"

    def _eq_impl(self, other: 'TargetSpec') -> bool:
        return True


class BoolOrNone(Type, click.ParamType):
    """
    True, False or None, where None means "not set". Defaults to None.
    """

    name = "bool_or_none"  # type: str

    def __init__(self):
        super().__init__()
        self.default = Default(None)

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(value is None or isinstance(value, bool), self)

    def convert(self, value, param, ctx: click.Context) -> t.Optional[bool]:
        if isinstance(value, self):
            return value
        if isinstance(value, str) and value.lower() in ["true", "false", "none"]:
            return {"true": True, "false": False, "none": None}[value.lower()]
        self.fail("{} is no valid bool or 'none'".format(value), param, ctx)

    def __str__(self) -> str:
        return "BoolOrNone()"

    def _eq_impl(self, other: 'BoolOrNone') -> bool:
        return True


class Bool(Type, click.ParamType):
    """
    True or False.
    """

    name = "bool"  # type: str

    def _instancecheck_impl(self, value, info: Info) -> InfoMsg:
        return info.errormsg_cond(isinstance(value, bool), self)

    def __str__(self) -> str:
        return "Bool()"

    def _eq_impl(self, other: 'Bool') -> bool:
        return True


def verbose_isinstance(value, type: t.Union[Type, type], value_name: str = None) -> InfoMsg:
    """
    Verbose version of isinstance that returns an InfoMsg object.

    :param value: value to check
    :param type: type or Type to check for
    :param value_name: name of the passed value (improves the error message)
    """
    if not isinstance(type, Type):
        type = T(type)
    if not isinstance(value, type):
        return type.__instancecheck__(value, Info(value_name))
    return InfoMsg(True)


def typecheck(value, type: t.Union[Type, type], value_name: str = None):
    """
    Like verbose_isinstance but raises an error if the value hasn't the expected type.

    :raises: TypeError
    """
    ret = verbose_isinstance(value, type, value_name)
    if not ret:
        raise TypeError(str(ret))


def typecheck_locals(locals: t.Dict[str, t.Any], **variables: t.Union[Type, type]):
    """
    Checks several local variables, e.g. ``typecheck_locals(locals(), name=Str())``.

    :raises: TypeError
    """
    for var in variables:
        typecheck(locals[var], variables[var], value_name=var)
