"""Explicit registry of types that can be created or described by name.

Callers pass a type identifier such as `UserDTO`; only identifiers listed
in `TYPE_REGISTRY` are honoured, nothing is imported or looked up
dynamically. Each entry pairs the schema class with a factory that builds
a default instance.
"""

from typing import Callable, Dict, NamedTuple, Type

from pydantic import BaseModel

from . import schemas


class UnknownTypeError(LookupError):
    """The identifier is not present in the registry."""


class RegisteredType(NamedTuple):
    model: Type[BaseModel]
    factory: Callable[[], BaseModel]


TYPE_REGISTRY: Dict[str, RegisteredType] = {
    "UserDTO": RegisteredType(
        schemas.UserDTO,
        lambda: schemas.UserDTO(id=0, name="", email="", roles=[]),
    ),
    "ProductDTO": RegisteredType(
        schemas.ProductDTO,
        lambda: schemas.ProductDTO(id=0, name="", price=0.0, description="", category=""),
    ),
}


def _lookup(name: str) -> RegisteredType:
    # accept fully qualified names such as "com.example.dto.UserDTO"
    short = name.rsplit(".", 1)[-1]
    try:
        return TYPE_REGISTRY[short]
    except KeyError:
        raise UnknownTypeError(f"Unknown type: {name}") from None


def create_instance(name: str) -> BaseModel:
    """Build a default instance of the registered type `name`."""
    return _lookup(name).factory()


def describe_type(name: str) -> schemas.TypeDescriptionOut:
    """Describe the fields and public methods of the registered type."""
    model = _lookup(name).model
    methods = sorted(
        attr for attr, value in vars(model).items()
        if callable(value) and not attr.startswith("_")
    )
    base = model.__mro__[1] if len(model.__mro__) > 1 else None
    return schemas.TypeDescriptionOut(
        class_name=model.__name__,
        fields=list(model.model_fields),
        methods=methods,
        is_interface=False,
        superclass=base.__name__ if base is not None else None,
    )
