"""Execution config — the input form the editor shows before a workflow run."""

from __future__ import annotations

import copy
from typing import Any

from agenticflows.registry.function_registry import derive_analysis_type
from agenticflows.workflow.model import Workflow

_MANUAL_INPUT_SOURCE: dict[str, Any] = {
    "id": "manualInput",
    "name": "Manual Input",
    "description": "Enter data manually for workflow execution",
    "fields": [
        {
            "id": "text",
            "label": "Input Text",
            "type": "textarea",
            "placeholder": "Enter text to analyze...",
            "required": False,
        }
    ],
}

_DATABASE_SOURCE: dict[str, Any] = {
    "id": "databaseSource",
    "name": "Database Connection",
    "description": "Configure database connection for data retrieval",
    "fields": [
        {
            "id": "dbPath",
            "label": "Database Path",
            "type": "text",
            "description": "Path to the SQLite database file",
            "required": True,
        },
        {
            "id": "maxItems",
            "label": "Maximum Items",
            "type": "number",
            "description": "Maximum number of items to retrieve",
            "defaultValue": "100",
            "required": False,
        },
    ],
}

_EXECUTION_PARAMS: dict[str, Any] = {
    "id": "executionParams",
    "label": "Execution Parameters",
    "fields": [
        {
            "id": "batchSize",
            "label": "Batch Size",
            "type": "number",
            "description": "Number of items to process in each batch",
            "defaultValue": "10",
            "required": False,
        },
        {
            "id": "debugMode",
            "label": "Enable Debug Mode",
            "type": "checkbox",
            "defaultValue": False,
            "required": False,
        },
    ],
}

# Analysis type → extra parameter group, in the order the groups are shown
ANALYSIS_PARAMS: dict[str, dict[str, Any]] = {
    "trends": {
        "id": "trendsParams",
        "label": "Trends Analysis",
        "fields": [
            {
                "id": "focusAreas",
                "label": "Focus Areas",
                "type": "text",
                "description": "Comma-separated list of focus areas for trend analysis",
                "defaultValue": "customer_impact,financial_impact",
                "required": False,
            }
        ],
    },
    "patterns": {
        "id": "patternsParams",
        "label": "Patterns Analysis",
        "fields": [
            {
                "id": "patternTypes",
                "label": "Pattern Types",
                "type": "text",
                "description": "Comma-separated list of pattern types to identify",
                "defaultValue": "behavior_patterns,resolution_patterns",
                "required": False,
            }
        ],
    },
    "findings": {
        "id": "findingsParams",
        "label": "Findings Analysis",
        "fields": [
            {
                "id": "questions",
                "label": "Analysis Questions",
                "type": "textarea",
                "description": "Enter questions for findings analysis (one per line)",
                "defaultValue": "What are the most common patterns?\nWhat are the key areas for improvement?",
                "required": False,
            }
        ],
    },
}


def _mentions_database(label: str) -> bool:
    lowered = label.lower()
    return "database" in lowered or "db" in lowered


def generate_execution_config(wf: Workflow) -> dict[str, Any]:
    sources = [_MANUAL_INPUT_SOURCE]
    if any(n.category == "tool" and _mentions_database(n.label or "") for n in wf.nodes):
        sources.append(_DATABASE_SOURCE)

    present = {
        derive_analysis_type(n.function_id)
        for n in wf.nodes
        if n.function_id
    }
    parameters = [_EXECUTION_PARAMS]
    parameters.extend(group for atype, group in ANALYSIS_PARAMS.items() if atype in present)

    return copy.deepcopy({
        "id": wf.workflow_id,
        "name": wf.name,
        "description": f"Execution configuration for {wf.name}",
        "inputTabs": [
            {"id": "basicData", "label": "Data Sources", "dataSourceConfigs": sources},
        ],
        "parameters": parameters,
    })
