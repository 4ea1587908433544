"""
Tests related to the typecheck code
"""
import pytest

from prebuildify.utils.typecheck import verbose_isinstance, typecheck, Int, Dict, Either, T, List, ListOrTuple, \
    Str, Bool, BoolOrNone, TargetSpec, ExactEither, Default, Description, ConstraintError


def test_dict_missing_key_error_msg():
    assert "value {}['a'] is non existent" in verbose_isinstance({}, Dict({"a": Int()})).msg


def test_dict_wrong_type_error_msg():
    assert "['a'] hasn't the expected type Int()" in verbose_isinstance({"a": "s"}, Dict({"a": Int()})).msg


def test_dict_unknown_keys():
    assert not isinstance({"a": 1, "b": 2}, Dict({"a": Int()}))
    assert "unknown keys 'b'" in verbose_isinstance({"a": 1, "b": 2}, Dict({"a": Int()})).msg
    assert isinstance({"a": 1, "b": 2}, Dict({"a": Int()}, unknown_keys=True))


def test_either_ints():
    assert isinstance(28593, Either(Either(Int() | T(float)) | List(Either(Int() | T(float)))))


def test_bools_are_no_ints():
    assert not isinstance(True, Int())
    assert isinstance(True, Bool())
    assert isinstance(None, BoolOrNone())
    assert not isinstance("yes", BoolOrNone())


def test_lists():
    assert isinstance(["a", "b"], List(Str()))
    assert not isinstance(("a", "b"), List(Str()))
    assert isinstance(("a", "b"), ListOrTuple(Str()))
    assert not isinstance(["a", 1], ListOrTuple(Str()))


@pytest.mark.parametrize("value", ["12.4.0", "v12", "electron@v8.0.0", "node@10.0.0-beta.1", "my-runtime@3.0"])
def test_valid_target_specs(value: str):
    assert isinstance(value, TargetSpec())


@pytest.mark.parametrize("value", ["", "node", "@1.0.0", "node@latest", "node@@1.0.0", 12])
def test_invalid_target_specs(value):
    assert not isinstance(value, TargetSpec())


def test_defaults():
    scheme = Dict({
        "arch": Str() // Default("x64") // Description("Architecture"),
        "targets": List(Str()) // Default([]),
        "strip": BoolOrNone(),
        "level": ExactEither("info", "debug")
    })
    assert scheme.get_default() == {"arch": "x64", "targets": [], "strip": None}
    assert scheme["arch"].description == "Architecture"


def test_default_is_typechecked():
    with pytest.raises(TypeError):
        Int() // Default("1")


def test_typecheck():
    typecheck("info", ExactEither("info", "debug"))
    with pytest.raises(TypeError, match="log_level"):
        typecheck("verbose", ExactEither("info", "debug"), "log_level")


def test_annotations():
    with pytest.raises(ConstraintError):
        Str() // (lambda value: value != "")
    assert isinstance("", Str() // "Any string")
