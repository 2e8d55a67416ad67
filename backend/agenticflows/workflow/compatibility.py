"""Field compatibility between connected function nodes.

A mapping moves the value at a source node's output path into a target
node's input path.  ``is_compatible`` applies the direct rules in priority
order (first match wins):

  1. identical paths
  2. identical final path segment (key name)
  3. identical declared types
  4. both sides generic object types (``object`` / ``object[]``)
  5. object collection → single object
  6. ``string[]`` → ``string``

Anything else needs a named transform whose declared source/target types
match the two fields.  ``check_mapping`` classifies an explicit mapping for
the validator and the executor; ``auto_map`` proposes mappings for a new edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from agenticflows.workflow.model import FunctionDescriptor, InputField, OutputField
from agenticflows.workflow.paths import last_segment
from agenticflows.workflow.transforms import Transform, TransformRegistry

Field = Union[InputField, OutputField]

GENERIC_OBJECT_TYPES: frozenset[str] = frozenset({"object", "object[]", "array"})
OBJECT_COLLECTION_TYPES: frozenset[str] = frozenset({"object[]", "array"})

# Transform suggested when auto-mapping between two analysis types.  Only
# attached to a proposed pair whose field types the transform accepts.
SUGGESTED_TRANSFORMS: dict[tuple[str, str], str] = {
    ("trends", "findings"): "join",
    ("findings", "plan"): "join",
    ("trends", "recommendations"): "first",
    ("patterns", "recommendations"): "first",
}

# check_mapping statuses
DIRECT = "direct"
NARROWING = "narrowing"
TRANSFORM = "transform"
INCOMPATIBLE = "incompatible"


def normalize_type(type_name: str | None) -> str:
    return (type_name or "").strip().lower().replace(" ", "")


def types_match(a: str, b: str) -> bool:
    """Declared-type equality, treating ``array`` and ``object[]`` as one type."""
    a, b = normalize_type(a), normalize_type(b)
    if a == b:
        return True
    return a in OBJECT_COLLECTION_TYPES and b in OBJECT_COLLECTION_TYPES


def compatibility_rule(source: Field, target: Field) -> int | None:
    """Return the number of the first direct rule that accepts the pair, else None."""
    if source.path == target.path:
        return 1
    if last_segment(source.path) and last_segment(source.path) == last_segment(target.path):
        return 2
    src_type = normalize_type(source.type)
    tgt_type = normalize_type(target.type)
    if src_type and src_type == tgt_type:
        return 3
    if src_type in GENERIC_OBJECT_TYPES and tgt_type in GENERIC_OBJECT_TYPES:
        return 4
    if src_type in OBJECT_COLLECTION_TYPES and tgt_type == "object":
        return 5
    if src_type == "string[]" and tgt_type == "string":
        return 6
    return None


def is_compatible(source: Field, target: Field) -> bool:
    return compatibility_rule(source, target) is not None


def _is_narrowing(source: Field, target: Field) -> bool:
    src_type = normalize_type(source.type)
    tgt_type = normalize_type(target.type)
    if src_type in OBJECT_COLLECTION_TYPES and tgt_type == "object":
        return True
    return src_type == "string[]" and tgt_type == "string"


def transform_accepts(transform: Transform, source: Field, target: Field) -> bool:
    return types_match(transform.source_type, source.type) and types_match(
        transform.target_type, target.type
    )


@dataclass
class MappingCheck:
    status: str  # direct | narrowing | transform | incompatible
    rule: int | None = None
    transform: Transform | None = None
    kind: str | None = None  # warning kind when the mapping deserves one
    message: str = ""

    @property
    def executable(self) -> bool:
        return self.status != INCOMPATIBLE


def check_mapping(
    source: Field,
    target: Field,
    transform_name: str | None,
    transforms: TransformRegistry,
) -> MappingCheck:
    """Classify one explicit mapping between two declared fields."""
    rule = compatibility_rule(source, target)
    pair = f"'{source.path}' ({source.type}) -> '{target.path}' ({target.type})"

    if transform_name:
        transform = transforms.get(transform_name)
        if transform is None:
            return MappingCheck(
                INCOMPATIBLE, rule, kind="unknown_transform",
                message=f"{pair}: transform '{transform_name}' is not registered",
            )
        if not transform_accepts(transform, source, target):
            return MappingCheck(
                INCOMPATIBLE, rule, kind="transform_mismatch",
                message=(
                    f"{pair}: transform '{transform_name}' converts "
                    f"{transform.source_type} -> {transform.target_type}"
                ),
            )
        return MappingCheck(TRANSFORM, rule, transform=transform, message=f"{pair} via '{transform_name}'")

    if rule is None:
        return MappingCheck(
            INCOMPATIBLE, None, kind="incompatible",
            message=f"{pair}: types are incompatible and no transform is named",
        )
    if rule >= 4 and _is_narrowing(source, target):
        return MappingCheck(
            NARROWING, rule, kind="narrowing",
            message=f"{pair}: collection narrowed to a single value without a transform",
        )
    return MappingCheck(DIRECT, rule, message=pair)


@dataclass
class SuggestedMapping:
    source_output: str
    target_input: str
    rule: int
    transform: str | None = None

    def as_dict(self) -> dict[str, object]:
        d: dict[str, object] = {"sourceOutput": self.source_output, "targetInput": self.target_input}
        if self.transform:
            d["transform"] = self.transform
        return d


def auto_map(
    source: FunctionDescriptor,
    target: FunctionDescriptor,
    transforms: TransformRegistry,
) -> list[SuggestedMapping]:
    """Every (output, input) pair that passes ``is_compatible``, in declaration order."""
    suggested_name = SUGGESTED_TRANSFORMS.get((source.analysis_type, target.analysis_type))
    suggested = transforms.get(suggested_name) if suggested_name else None

    pairs: list[SuggestedMapping] = []
    for out in source.outputs:
        for inp in target.inputs:
            rule = compatibility_rule(out, inp)
            if rule is None:
                continue
            transform = None
            if suggested is not None and transform_accepts(suggested, out, inp):
                transform = suggested.name
            pairs.append(SuggestedMapping(out.path, inp.path, rule, transform))
    return pairs
