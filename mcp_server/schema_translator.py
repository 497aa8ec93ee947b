"""
Schema Translator - tool parameter schema -> pydantic validator shape

Tool definitions describe their parameters with a JSON-Schema-like object:

    {
        "type": "object",
        "properties": {
            "to": {"type": ["string", "array"], "items": {"type": "string"}},
            "subject": {"type": "string", "description": "Email subject"},
            "bodyType": {"type": "string", "enum": ["Text", "HTML"]}
        },
        "required": ["to", "subject"]
    }

The raw dict is parsed once into a closed set of field types
(PrimitiveType, UnionType, ArrayType, ObjectType, UnknownType) and every
variant is mapped to a pydantic annotation. Multi-typed fields (a type list
or oneOf/anyOf) become a real Union of every alternative regardless of
arity; only a field with no recognizable type is left unconstrained.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union, get_origin

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    create_model,
)
from pydantic.fields import FieldInfo

from .errors import SchemaDefinitionError, ToolValidationError

logger = logging.getLogger(__name__)

PRIMITIVE_TAGS = ("string", "number", "integer", "boolean")
UNION_KEYWORDS = ("oneOf", "anyOf")


# ============================================================================
# Parsed field types
# ============================================================================

@dataclass(frozen=True)
class PrimitiveType:
    tag: str
    enum: Optional[Tuple[Any, ...]] = None


@dataclass(frozen=True)
class ArrayType:
    items: Optional["FieldType"] = None


@dataclass(frozen=True)
class ObjectType:
    schema: Optional["ParameterSchema"] = None


@dataclass(frozen=True)
class UnionType:
    alternatives: Tuple["FieldType", ...]


@dataclass(frozen=True)
class UnknownType:
    pass


FieldType = Union[PrimitiveType, ArrayType, ObjectType, UnionType, UnknownType]


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: FieldType
    description: str = ""
    required: bool = False


@dataclass(frozen=True)
class ParameterSchema:
    fields: Tuple[FieldSpec, ...] = ()

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)


ValidatorShape = Mapping[str, Tuple[Any, FieldInfo]]


# ============================================================================
# Parsing
# ============================================================================

def _parse_tag(tag: Any, spec: Mapping[str, Any], path: str, in_union: bool) -> FieldType:
    if tag == "string":
        enum = spec.get("enum")
        if isinstance(enum, (list, tuple)) and enum:
            return PrimitiveType("string", tuple(enum))
        return PrimitiveType("string")

    if tag in PRIMITIVE_TAGS:
        # enum is only meaningful for strings
        return PrimitiveType(tag)

    if tag == "array":
        items = spec.get("items")
        return ArrayType(parse_field_type(items, f"{path}[]") if items is not None else None)

    if tag == "object":
        if spec.get("properties") is not None:
            return ObjectType(parse_parameter_schema(spec, path))
        return ObjectType()

    if in_union:
        raise SchemaDefinitionError(f"unknown type {tag!r} in union", field=path)

    if tag is not None:
        logger.warning(f"Unknown parameter type {tag!r} for '{path}', accepting any value")
    return UnknownType()


def parse_field_type(spec: Any, path: str = "") -> FieldType:
    """
    Parse one property spec into a FieldType.

    Raises:
        SchemaDefinitionError: the property spec is not an object, or declares a union
            with fewer than two alternatives, a repeated alternative or an unknown one
    """
    if not isinstance(spec, Mapping):
        raise SchemaDefinitionError(f"property spec must be an object, got {type(spec).__name__}", field=path)

    for keyword in UNION_KEYWORDS:
        if keyword in spec:
            alternatives = spec[keyword]
            if not isinstance(alternatives, (list, tuple)) or len(alternatives) < 2:
                raise SchemaDefinitionError(f"{keyword} needs at least two alternatives", field=path)
            parsed = tuple(parse_field_type(alt, path) for alt in alternatives)
            if any(isinstance(alt, UnknownType) for alt in parsed):
                raise SchemaDefinitionError(f"{keyword} alternative without a type", field=path)
            return _union(parsed, path)

    type_tag = spec.get("type")

    if isinstance(type_tag, (list, tuple)):
        if not type_tag:
            raise SchemaDefinitionError("empty type list", field=path)
        if len(type_tag) == 1:
            return _parse_tag(type_tag[0], spec, path, in_union=False)
        return _union(tuple(_parse_tag(tag, spec, path, in_union=True) for tag in type_tag), path)

    return _parse_tag(type_tag, spec, path, in_union=False)


def _union(alternatives: Tuple[FieldType, ...], path: str) -> UnionType:
    if any(alt in alternatives[:index] for index, alt in enumerate(alternatives)):
        raise SchemaDefinitionError("duplicate type in union", field=path)
    return UnionType(alternatives)


def parse_parameter_schema(schema: Optional[Mapping[str, Any]], path: str = "") -> ParameterSchema:
    """
    Parse an object schema ({properties, required}) into a ParameterSchema.

    Missing properties give an empty schema and missing required makes every
    field optional.
    """
    if schema is None:
        return ParameterSchema()

    if not isinstance(schema, Mapping):
        raise SchemaDefinitionError(f"schema must be an object, got {type(schema).__name__}", field=path or None)

    properties = schema.get("properties") or {}
    if not isinstance(properties, Mapping):
        raise SchemaDefinitionError("properties must be an object", field=path or None)

    required = schema.get("required") or []
    if not isinstance(required, (list, tuple)):
        raise SchemaDefinitionError("required must be a list", field=path or None)

    undeclared = [name for name in required if name not in properties]
    if undeclared:
        raise SchemaDefinitionError(
            f"required field(s) not declared in properties: {', '.join(map(str, undeclared))}",
            field=path or None,
        )

    fields = []
    for name, spec in properties.items():
        field_path = f"{path}.{name}" if path else name
        field_type = parse_field_type(spec, field_path)
        fields.append(FieldSpec(
            name=name,
            type=field_type,
            description=str(spec.get("description") or ""),
            required=name in required,
        ))

    return ParameterSchema(tuple(fields))


# ============================================================================
# Translation
# ============================================================================

def _model_name(path: str) -> str:
    words = re.split(r"[^0-9a-zA-Z]+", path)
    name = "".join(w[:1].upper() + w[1:] for w in words if w)
    return name or "Parameters"


def field_annotation(field_type: FieldType, path: str = "") -> Any:
    """Map a parsed FieldType to a pydantic annotation."""
    if isinstance(field_type, UnionType):
        members = tuple(field_annotation(alt, path) for alt in field_type.alternatives)
        return Union[members]

    if isinstance(field_type, PrimitiveType):
        if field_type.tag == "string":
            if field_type.enum:
                return Literal[field_type.enum]
            return StrictStr
        if field_type.tag == "number":
            return Union[StrictInt, StrictFloat]
        if field_type.tag == "integer":
            return StrictInt
        if field_type.tag == "boolean":
            return StrictBool

    if isinstance(field_type, ArrayType):
        item = field_annotation(field_type.items, f"{path}Item") if field_type.items is not None else Any
        return Annotated[List[item], Strict()]

    if isinstance(field_type, ObjectType):
        if field_type.schema is None:
            return Annotated[Dict[str, Any], Strict()]
        return build_validator_model(path, translate_schema(field_type.schema, path), extra="allow")

    return Any


def translate_field(field: FieldSpec, path: Optional[str] = None) -> Tuple[Any, FieldInfo]:
    """Translate one field into an (annotation, FieldInfo) pair."""
    annotation = field_annotation(field.type, path or field.name)

    kwargs: Dict[str, Any] = {"description": field.description, "alias": field.name}
    # union_mode only applies to a real Union annotation
    if isinstance(field.type, UnionType) and get_origin(annotation) is Union:
        kwargs["union_mode"] = "left_to_right"

    if field.required:
        return annotation, Field(..., **kwargs)
    # optional: may be omitted, explicit null is still rejected
    return annotation, Field(default=None, **kwargs)


def translate_schema(parameter_schema: Union[Mapping[str, Any], ParameterSchema, None], path: str = "") -> ValidatorShape:
    """
    Build the validator shape for a tool parameter schema.

    Args:
        parameter_schema: raw {properties, required} dict or a parsed ParameterSchema
        path: name prefix used for nested model names

    Returns:
        Read-only mapping of field name -> (annotation, FieldInfo)

    Raises:
        SchemaDefinitionError: the schema is structurally malformed
    """
    if not isinstance(parameter_schema, ParameterSchema):
        parameter_schema = parse_parameter_schema(parameter_schema, path)

    shape = {}
    for field in parameter_schema.fields:
        field_path = f"{path}.{field.name}" if path else field.name
        shape[field.name] = translate_field(field, field_path)

    return MappingProxyType(shape)


def build_validator_model(name: str, shape: ValidatorShape, extra: str = "ignore") -> Type[BaseModel]:
    """
    Create a pydantic model from a validator shape.

    Python attribute names are generated; every field is bound to its
    original name through its alias.
    """
    fields = {f"field_{index}": definition for index, definition in enumerate(shape.values())}
    return create_model(
        f"{_model_name(name)}Arguments",
        __config__=ConfigDict(extra=extra),
        **fields,
    )


def validate_arguments(model: Type[BaseModel], tool_name: str, arguments: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Validate call arguments and return them as a plain dict.

    Omitted optional fields are absent from the result and undeclared
    top-level keys are dropped.

    Raises:
        ToolValidationError: the arguments do not satisfy the model
    """
    try:
        validated = model.model_validate(arguments if arguments is not None else {})
    except ValidationError as e:
        raise ToolValidationError(tool_name, e.errors(include_url=False)) from e
    return validated.model_dump(by_alias=True, exclude_unset=True)
