from typing import Any, Literal

import numpy as np
import pytest
from pydantic import ValidationError

from nlpfront.config import OptimizerSettings, OptimizerSystem
from nlpfront.config.options import OptionsSchemaModel, gen_options_table


def test_system_defaults() -> None:
    system = OptimizerSystem(parameter_count=3)

    assert system.equality_constraint_count == 0
    assert system.inequality_constraint_count == 0
    assert system.constraint_count == 0
    assert system.lower_limits is None
    assert system.upper_limits is None
    assert not system.has_limits


def test_system_constraint_count() -> None:
    system = OptimizerSystem(
        parameter_count=3, equality_constraint_count=2, inequality_constraint_count=1
    )
    assert system.constraint_count == 3


@pytest.mark.parametrize(
    "config",
    [
        {"parameter_count": 0},
        {"parameter_count": 2, "equality_constraint_count": -1},
        {"parameter_count": 2, "inequality_constraint_count": -1},
        {"parameter_count": 2, "foo": 1},
    ],
)
def test_system_invalid(config: dict[str, Any]) -> None:
    with pytest.raises(ValidationError):
        OptimizerSystem.model_validate(config)


def test_system_limits_broadcast() -> None:
    system = OptimizerSystem(parameter_count=3, lower_limits=0.0)

    assert system.lower_limits is not None
    assert system.upper_limits is not None
    assert np.all(system.lower_limits == 0.0)
    assert np.all(system.upper_limits == np.inf)
    assert system.has_limits


def test_system_upper_limits_only() -> None:
    system = OptimizerSystem(parameter_count=2, upper_limits=[1.0, np.inf])

    assert system.lower_limits is not None
    assert np.all(system.lower_limits == -np.inf)
    assert system.has_limits


def test_system_infinite_limits() -> None:
    system = OptimizerSystem(
        parameter_count=2, lower_limits=-np.inf, upper_limits=np.inf
    )
    assert not system.has_limits


def test_system_limits_invalid_size() -> None:
    with pytest.raises(
        ValidationError, match="lower_limits cannot be broadcasted to a length of 3"
    ):
        OptimizerSystem(parameter_count=3, lower_limits=[0.0, 0.0])


def test_system_limits_order() -> None:
    with pytest.raises(
        ValidationError, match="The lower limits are larger than the upper limits"
    ):
        OptimizerSystem(parameter_count=2, lower_limits=1.0, upper_limits=[2.0, 0.0])


def test_system_immutable() -> None:
    system = OptimizerSystem(parameter_count=2, lower_limits=0.0)

    with pytest.raises(AttributeError, match="OptimizerSystem is immutable"):
        system.parameter_count = 3
    assert system.lower_limits is not None
    with pytest.raises(ValueError, match="read-only"):
        system.lower_limits[0] = 1.0


def test_settings_defaults() -> None:
    settings = OptimizerSettings()

    assert settings.convergence_tolerance == 1e-4
    assert settings.max_iterations == 1000
    assert settings.limited_memory_history == 50
    assert settings.diagnostics_level == 0
    assert not settings.numerical_gradient
    assert not settings.numerical_jacobian


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("convergence_tolerance", 0.0),
        ("convergence_tolerance", -1e-6),
        ("max_iterations", 0),
        ("limited_memory_history", -5),
        ("diagnostics_level", -1),
    ],
)
def test_settings_validate_assignment(field: str, value: Any) -> None:
    settings = OptimizerSettings()

    with pytest.raises(ValidationError):
        setattr(settings, field, value)


@pytest.fixture(name="schema")
def schema_fixture() -> OptionsSchemaModel:
    return OptionsSchemaModel.model_validate(
        {
            "methods": {
                "Method": {
                    "options": {
                        "a": float,
                        "b": int,
                        "c": Literal["foo", "bar"],
                        "d": bool,
                    },
                    "url": "https://example.org",
                },
            }
        }
    )


def test_options_schema_accepts(schema: OptionsSchemaModel) -> None:
    assert schema.accepts("method", "a", 1.0)
    assert schema.accepts("METHOD", "a", 1)
    assert schema.accepts("method", "b", 1)
    assert schema.accepts("method", "c", "foo")
    assert schema.accepts("method", "d", False)  # noqa: FBT003


@pytest.mark.parametrize(
    ("option", "value"),
    [
        ("a", "1.0"),
        ("b", 1.5),
        ("b", True),
        ("c", "baz"),
        ("d", 1),
        ("e", 1.0),
    ],
)
def test_options_schema_rejects(
    schema: OptionsSchemaModel, option: str, value: Any
) -> None:
    assert not schema.accepts("method", option, value)


def test_options_schema_unknown_method(schema: OptionsSchemaModel) -> None:
    assert not schema.accepts("other", "a", 1.0)
    with pytest.raises(ValueError, match="Method `other` not found in schema"):
        schema.get_options_model("other")


def test_options_table() -> None:
    table = gen_options_table(
        {
            "methods": {
                "Method": {"options": {"a": float, "b": int}, "url": "https://example.org"},
                "Other": {"options": {"c": str}},
            }
        }
    )
    assert "|[Method](https://example.org/)|a, b|" in table
    assert "|Other|c|" in table
