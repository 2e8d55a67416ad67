"""Function registry — declared inputs/outputs of every remote analysis function.

Descriptors come from two places:

  1. The built-in catalog below, matching what the workflow editor offers.
  2. The analysis service's metadata query, merged over the catalog by
     :meth:`FunctionRegistry.load_metadata`.

Function identifiers follow the editor's naming (``analysis-trends``); older
documents use ``function-trends-analysis`` and the wire protocol uses the bare
analysis type (``trends``).  All three resolve to the same descriptor.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from agenticflows.workflow.model import FunctionDescriptor, InputField, OutputField

logger = logging.getLogger("agenticflows.registry.function")

_ID_NOISE = frozenset({"analysis", "function"})


def _in(name: str, type_: str, required: bool = False, description: str = "") -> InputField:
    return InputField(name=name, path=name, type=type_, required=required, description=description)


def _out(name: str, type_: str, description: str = "") -> OutputField:
    return OutputField(name=name, path=name, type=type_, description=description)


BUILTIN_FUNCTIONS: tuple[FunctionDescriptor, ...] = (
    FunctionDescriptor(
        function_id="analysis-intent",
        analysis_type="intent",
        label="Generate Intent",
        description="Classify the intent expressed in a piece of text",
        inputs=[_in("text", "string", True, "Text to extract intent from")],
        outputs=[
            _out("label_name", "string", "Machine-readable intent label"),
            _out("label", "string", "Human-readable intent label"),
            _out("description", "string", "Detailed description of the intent"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-attributes",
        analysis_type="attributes",
        label="Extract Attributes",
        description="Extract attribute values from text or generate required attributes",
        inputs=[
            _in("text", "string", True, "Text to extract attributes from"),
            _in("attributes", "array", True, "Attribute definitions to extract"),
            _in("generate_required", "boolean", False, "Whether to generate required attributes"),
            _in("questions", "string[]", False, "Questions to generate attributes for"),
        ],
        outputs=[
            _out("attribute_values", "object", "Extracted attribute values"),
            _out("attributes", "array", "Generated attribute definitions"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-trends",
        analysis_type="trends",
        label="Trends Analysis",
        description="Analyze trends in conversation data",
        inputs=[
            _in("focus_areas", "string[]", True, "Areas of interest to analyze trends for"),
            _in("attribute_values", "object", False, "Extracted attributes to analyze"),
        ],
        outputs=[
            _out("trends", "array", "Identified trends with supporting data and confidence"),
            _out("overall_insights", "string[]", "General insights derived from the data"),
            _out("data_quality", "object", "Assessment of data quality and limitations"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-patterns",
        analysis_type="patterns",
        label="Patterns Analysis",
        description="Identify patterns in conversation data",
        inputs=[
            _in("pattern_types", "string[]", True, "Types of patterns to identify"),
            _in("attribute_values", "object", False, "Extracted attributes to analyze"),
        ],
        outputs=[
            _out("patterns", "array", "Identified patterns with occurrences and significance"),
            _out("unexpected_patterns", "array", "Unexpected patterns and potential causes"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-findings",
        analysis_type="findings",
        label="Findings Analysis",
        description="Answer questions from extracted attributes",
        inputs=[
            _in("questions", "string[]", True, "Questions to answer based on the analysis"),
            _in("attribute_values", "object", True, "Extracted attributes to analyze"),
            _in("text", "string", False, "Free-text context for the questions"),
        ],
        outputs=[
            _out("answers", "array", "Answers with metrics, confidence and supporting data"),
            _out("data_gaps", "string[]", "Areas where data is insufficient"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-recommendations",
        analysis_type="recommendations",
        label="Recommendations",
        description="Generate recommendations based on analysis",
        inputs=[
            _in("data", "object", True, "Data for recommendation generation"),
            _in("findings", "array", False, "Analysis findings"),
            _in("patterns", "array", False, "Identified patterns"),
            _in("objectives", "string[]", False, "Objectives for recommendations"),
        ],
        outputs=[
            _out("recommendations", "array", "Recommended actions"),
            _out("priorities", "object", "Priority ratings for recommendations"),
        ],
    ),
    FunctionDescriptor(
        function_id="analysis-plan",
        analysis_type="plan",
        label="Action Plan Generation",
        description="Build an action plan from recommendations",
        inputs=[
            _in("recommendations", "array", True, "Recommendations to build the plan from"),
            _in("context", "string", False, "Context information"),
            _in("goals", "string[]", False, "Goals for the action plan"),
        ],
        outputs=[
            _out("action_plan", "object", "Full action plan"),
            _out("timeline", "array", "Implementation timeline"),
            _out("resources", "string[]", "Required resources"),
        ],
    ),
)


def derive_analysis_type(function_id: str) -> str | None:
    """``analysis-trends`` / ``function-trends-analysis`` / ``trends`` -> ``trends``."""
    parts = [p for p in function_id.strip().lower().replace("_", "-").split("-") if p]
    meaningful = [p for p in parts if p not in _ID_NOISE]
    if not meaningful:
        return None
    return "_".join(meaningful)


class FunctionRegistry:
    """Function identifier -> FunctionDescriptor."""

    def __init__(self, descriptors: tuple[FunctionDescriptor, ...] | list[FunctionDescriptor] = BUILTIN_FUNCTIONS):
        self._by_id: dict[str, FunctionDescriptor] = {}
        self._by_type: dict[str, FunctionDescriptor] = {}
        for d in descriptors:
            self.register(copy.deepcopy(d))

    def register(self, descriptor: FunctionDescriptor) -> None:
        self._by_id[descriptor.function_id] = descriptor
        self._by_type[descriptor.analysis_type] = descriptor

    def get(self, function_id: str | None) -> FunctionDescriptor | None:
        if not function_id:
            return None
        found = self._by_id.get(function_id)
        if found is not None:
            return found
        analysis_type = derive_analysis_type(function_id)
        return self._by_type.get(analysis_type) if analysis_type else None

    def analysis_type_for(self, function_id: str) -> str | None:
        descriptor = self.get(function_id)
        if descriptor is not None:
            return descriptor.analysis_type
        return derive_analysis_type(function_id)

    def all(self) -> list[FunctionDescriptor]:
        return sorted(self._by_id.values(), key=lambda d: d.function_id)

    # ── Service metadata ────────────────────────────────────────

    def load_metadata(self, payload: dict[str, Any] | list[Any]) -> int:
        """Merge descriptors from the analysis service's metadata response.

        Accepts the detailed form (``inputs``/``outputs`` lists per function,
        keyed by id or as a list) and the summary form (``parameters`` dict
        per analysis type).  Returns the number of descriptors touched.
        """
        if isinstance(payload, list):
            entries = [(e.get("id", ""), e) for e in payload if isinstance(e, dict)]
        elif isinstance(payload, dict):
            entries = [(k, v) for k, v in payload.items() if isinstance(v, dict)]
        else:
            raise ValueError("Function metadata must be a JSON object or list")

        touched = 0
        for key, entry in entries:
            function_id = entry.get("id") or key
            if not function_id:
                logger.warning("Skipping function metadata entry without an id")
                continue
            existing = self.get(function_id)
            descriptor = _merge_descriptor(function_id, entry, existing)
            if descriptor is None:
                logger.warning("Skipping function metadata for %s: no analysis type", function_id)
                continue
            self.register(descriptor)
            touched += 1
        logger.info("Loaded metadata for %d analysis function(s)", touched)
        return touched


def _merge_descriptor(
    function_id: str, entry: dict[str, Any], existing: FunctionDescriptor | None
) -> FunctionDescriptor | None:
    analysis_type = (
        entry.get("analysis_type")
        or entry.get("analysisType")
        or (existing.analysis_type if existing else None)
        or derive_analysis_type(function_id)
    )
    if not analysis_type:
        return None

    # Merging over an existing descriptor keeps its catalog id, so a service
    # that reports by analysis type ("trends") updates "analysis-trends".
    base = copy.deepcopy(existing) if existing else FunctionDescriptor(function_id, analysis_type)
    base.analysis_type = analysis_type
    base.label = entry.get("label") or entry.get("name") or base.label
    base.description = entry.get("description") or base.description
    base.schema_version = str(entry.get("schema_version") or entry.get("version") or base.schema_version)

    if isinstance(entry.get("inputs"), list):
        base.inputs = [
            InputField(
                name=f.get("name", ""),
                path=f.get("path") or f.get("name", ""),
                type=f.get("type", "object"),
                required=bool(f.get("required", False)),
                description=f.get("description", ""),
            )
            for f in entry["inputs"]
            if isinstance(f, dict) and (f.get("path") or f.get("name"))
        ]
    elif isinstance(entry.get("parameters"), dict):
        known = {f.path for f in base.inputs}
        for name, spec in entry["parameters"].items():
            if name in known:
                continue
            spec = spec if isinstance(spec, dict) else {}
            base.inputs.append(
                InputField(
                    name=name,
                    path=name,
                    type=spec.get("type", "object"),
                    required=bool(spec.get("required", False)),
                    description=spec.get("description", ""),
                )
            )

    if isinstance(entry.get("outputs"), list):
        base.outputs = [
            OutputField(
                name=f.get("name", ""),
                path=f.get("path") or f.get("name", ""),
                type=f.get("type", "object"),
                description=f.get("description", ""),
            )
            for f in entry["outputs"]
            if isinstance(f, dict) and (f.get("path") or f.get("name"))
        ]
    return base
