"""Schemas of the advanced options recognized by optimizer backends.

Each backend describes its advanced options with a plain dictionary of the
form:

```py
{
    "methods": {
        "LBFGS": {
            "options": {"gtol": float, "maxls": int},
            "url": "https://docs.scipy.org/...",
        },
    }
}
```

where the method names are the names of the
[`OptimizerAlgorithm`][nlpfront.enums.OptimizerAlgorithm] members implemented
by the backend. The models in this module validate such dictionaries and
decide whether an option value is acceptable.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, HttpUrl, ValidationError, create_model

T = TypeVar("T")


class MethodSchemaModel(BaseModel, Generic[T]):
    """The options of a single method.

    Attributes:
        options: The option types, keyed by option name.
        url:     Optional link to the documentation of the method.
    """

    options: dict[str, T]
    url: HttpUrl | None = None

    model_config = ConfigDict(extra="forbid")


class OptionsSchemaModel(BaseModel):
    """The options of all methods of a backend.

    **Example**:
    ```py
    from nlpfront.config.options import OptionsSchemaModel

    schema = OptionsSchemaModel.model_validate(
        {"methods": {"LBFGS": {"options": {"gtol": float, "maxls": int}}}}
    )
    schema.accepts("LBFGS", "maxls", 10)  # True
    schema.accepts("LBFGS", "maxls", 1.5)  # False
    ```

    Attributes:
        methods: The method schemas, keyed by method name.
    """

    methods: dict[str, MethodSchemaModel[Any]]

    model_config = ConfigDict(extra="forbid")

    def get_options_model(self, method: str) -> type[BaseModel]:
        """Build a model that validates the options of a method.

        Method names are compared case-insensitively. All fields of the model
        are optional, and unknown fields are rejected.

        Args:
            method: The method name.

        Returns:
            A new Pydantic model class.

        Raises:
            ValueError: If the schema does not contain the method.
        """
        method_schema = next(
            (
                value
                for name, value in self.methods.items()
                if name.lower() == method.lower()
            ),
            None,
        )
        if method_schema is None:
            msg = f"Method `{method}` not found in schema."
            raise ValueError(msg)
        fields = {
            name: (Union[type_, None], None)  # noqa: UP007
            for name, type_ in method_schema.options.items()
        }
        return create_model(  # type: ignore[call-overload, no-any-return]
            f"{method}Options", __config__=ConfigDict(extra="forbid"), **fields
        )

    def accepts(self, method: str, option: str, value: Any) -> bool:  # noqa: ANN401
        """Check if a method accepts an option with the given value.

        Values are validated in strict mode, hence strings, numbers and
        booleans are not converted into each other. Integers are accepted for
        floating point options.

        Args:
            method: The method name.
            option: The option name.
            value:  The value of the option.

        Returns:
            `True` if the option is known and the value has a valid type.
        """
        try:
            self.get_options_model(method).model_validate({option: value}, strict=True)
        except (ValidationError, ValueError):
            return False
        return True


def gen_options_table(schema: dict[str, Any]) -> str:
    """Render the options of a backend as a Markdown table.

    The table has one row per method, listing its options. Methods with a
    documentation URL are rendered as links.

    Args:
        schema: The options schema of a backend.

    Returns:
        The Markdown table.
    """
    OptionsSchemaModel.model_validate(schema)
    lines = ["", "| Method | Method Options |", "|--------|----------------|"]
    for method, method_schema in schema["methods"].items():
        url = MethodSchemaModel[Any].model_validate(method_schema).url
        name = f"[{method}]({url})" if url else method
        lines.append(f"|{name}|{', '.join(method_schema['options'])}|")
    return "\n".join(lines) + "\n"
