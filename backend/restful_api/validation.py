"""Rule-string validation for resource payloads.

Models declare rules as `{"field": "required|string|max:255"}` (a list of rule
strings is also accepted). The rules are compiled into a pydantic model built
with `create_model`; pydantic errors are mapped back to rule names so custom
messages can be keyed by `field.rule` or `rule`.

Supported rules: required, sometimes, nullable, string, integer, numeric,
boolean, email, uuid, min:N, max:N, in:a,b,...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Mapping, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, create_model

from restful_api.core.errors import RestfulError, ResourceValidationError
from restful_api.core.identifiers import UUID_PATTERN as CANONICAL_UUID


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
# Same canonical form `is_uuid` accepts; pydantic takes the flag inline.
UUID_PATTERN = "(?i)" + CANONICAL_UUID.pattern

TYPE_RULES: dict[str, type] = {
    "string": str,
    "email": str,
    "uuid": str,
    "integer": int,
    "numeric": float,
    "boolean": bool,
}
FLAG_RULES = {"required", "sometimes", "nullable"}
ARG_RULES = {"min", "max", "in"}

DEFAULT_MESSAGES: dict[str, str] = {
    "required": "The :attribute field is required.",
    "string": "The :attribute must be a string.",
    "integer": "The :attribute must be an integer.",
    "numeric": "The :attribute must be a number.",
    "boolean": "The :attribute field must be true or false.",
    "email": "The :attribute must be a valid email address.",
    "uuid": "The :attribute must be a valid UUID.",
    "min.string": "The :attribute must be at least :min characters.",
    "min.numeric": "The :attribute must be at least :min.",
    "max.string": "The :attribute may not be greater than :max characters.",
    "max.numeric": "The :attribute may not be greater than :max.",
    "in": "The selected :attribute is invalid.",
}

# pydantic error type -> rule name
_ERROR_RULES: dict[str, str] = {
    "missing": "required",
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "numeric",
    "float_parsing": "numeric",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "string_too_short": "min",
    "string_too_long": "max",
    "greater_than_equal": "min",
    "less_than_equal": "max",
}


@dataclass
class FieldRules:
    """Parsed rules for one field."""

    name: str
    required: bool = False
    nullable: bool = False
    type_rule: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    choices: Optional[tuple[str, ...]] = None
    rules: list[str] = field(default_factory=list)

    @property
    def numeric(self) -> bool:
        return self.type_rule in ("integer", "numeric")

    def annotation(self) -> Any:
        base: Any = TYPE_RULES.get(self.type_rule or "", Any)
        constraints: dict[str, Any] = {}
        if self.type_rule == "email":
            constraints["pattern"] = EMAIL_PATTERN
        elif self.type_rule == "uuid":
            constraints["pattern"] = UUID_PATTERN
        if self.numeric:
            if self.min is not None:
                constraints["ge"] = self.min
            if self.max is not None:
                constraints["le"] = self.max
        elif self.type_rule in ("string", "email", "uuid"):
            if self.min is not None:
                constraints["min_length"] = int(self.min)
            if self.max is not None:
                constraints["max_length"] = int(self.max)

        metadata: list[Any] = [Field(**constraints)] if constraints else []
        if self.choices is not None:
            metadata.append(AfterValidator(_choice_validator(self.choices)))
        if metadata:
            base = Annotated[tuple([base, *metadata])]  # type: ignore[misc]
        return Optional[base]


def _choice_validator(choices: tuple[str, ...]):
    def check(value: Any) -> Any:
        if value is not None and str(value) not in choices:
            raise ValueError("in")
        return value

    return check


def parse_rules(name: str, definition: Union[str, list[str], tuple[str, ...]]) -> FieldRules:
    parts = definition.split("|") if isinstance(definition, str) else list(definition)
    parsed = FieldRules(name=name)
    for part in parts:
        part = part.strip()
        if not part:
            continue
        rule, _, arg = part.partition(":")
        rule = rule.strip().lower()
        parsed.rules.append(rule)
        if rule in FLAG_RULES:
            if rule == "required":
                parsed.required = True
            elif rule == "nullable":
                parsed.nullable = True
        elif rule in TYPE_RULES:
            if parsed.type_rule is not None and parsed.type_rule != rule:
                raise RestfulError(f"Field {name!r} declares conflicting types {parsed.type_rule!r} and {rule!r}.")
            parsed.type_rule = rule
        elif rule in ARG_RULES:
            if not arg:
                raise RestfulError(f"Rule {rule!r} on field {name!r} needs an argument.")
            if rule == "in":
                parsed.choices = tuple(v.strip() for v in arg.split(","))
            else:
                try:
                    setattr(parsed, rule, float(arg))
                except ValueError as exc:
                    raise RestfulError(f"Rule {part!r} on field {name!r} needs a number.") from exc
        else:
            raise RestfulError(f"Unknown validation rule {rule!r} on field {name!r}.")
    if parsed.type_rule in (None, "boolean") and (parsed.min is not None or parsed.max is not None):
        raise RestfulError(f"min/max on field {name!r} need a string, email, uuid, integer or numeric rule.")
    return parsed


def compile_rules(rules: Mapping[str, Any]) -> dict[str, FieldRules]:
    return {name: parse_rules(name, definition) for name, definition in rules.items()}


def build_payload_model(compiled: Mapping[str, FieldRules], name: str = "Payload") -> type[BaseModel]:
    fields: dict[str, Any] = {f.name: (f.annotation(), None) for f in compiled.values()}
    return create_model(name, __config__=ConfigDict(extra="ignore"), **fields)


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


def format_message(field_rules: FieldRules, rule: str, messages: Mapping[str, str]) -> str:
    name = field_rules.name
    template = messages.get(f"{name}.{rule}") or messages.get(rule)
    if template is None:
        if rule in ("min", "max"):
            template = DEFAULT_MESSAGES[f"{rule}.{'numeric' if field_rules.numeric else 'string'}"]
        else:
            template = DEFAULT_MESSAGES.get(rule, "The :attribute is invalid.")
    return (
        template.replace(":attribute", name.replace("_", " "))
        .replace(":min", _format_number(field_rules.min))
        .replace(":max", _format_number(field_rules.max))
        .replace(":values", ", ".join(field_rules.choices or ()))
    )


def _rule_for_error(error: Mapping[str, Any], field_rules: FieldRules) -> str:
    kind = str(error.get("type", ""))
    if kind == "string_pattern_mismatch":
        return field_rules.type_rule or "string"
    if kind == "value_error":
        return "in"
    return _ERROR_RULES.get(kind, field_rules.type_rule or "invalid")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_payload(
    payload: Mapping[str, Any],
    rules: Mapping[str, Any],
    messages: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Validate `payload` against `rules`.

    Returns the validated values for ruled fields that were present, or raises
    ResourceValidationError with `{field: [message, ...]}`. Unruled keys are
    dropped.
    """
    messages = messages or {}
    compiled = compile_rules(rules)
    errors: dict[str, list[str]] = {}

    for name, field_rules in compiled.items():
        present = name in payload
        value = payload.get(name)
        if field_rules.required and _is_blank(value):
            errors[name] = [format_message(field_rules, "required", messages)]
        elif present and value is None and not field_rules.nullable and field_rules.type_rule:
            errors[name] = [format_message(field_rules, field_rules.type_rule, messages)]

    data = {k: v for k, v in payload.items() if k in compiled and k not in errors}
    model = build_payload_model(compiled)
    validated: Optional[BaseModel] = None
    try:
        validated = model.model_validate(data)
    except ValidationError as exc:
        for error in exc.errors():
            name = str(error["loc"][0])
            rule = _rule_for_error(error, compiled[name])
            message = format_message(compiled[name], rule, messages)
            if message not in errors.setdefault(name, []):
                errors[name].append(message)

    if errors or validated is None:
        raise ResourceValidationError(errors)
    return validated.model_dump(exclude_unset=True)
