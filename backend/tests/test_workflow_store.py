"""Tests for the in-process workflow store."""

from __future__ import annotations

import pytest

from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.workflow.errors import WorkflowExistsError, WorkflowNotFoundError
from agenticflows.workflow.parser import parse_workflow


@pytest.fixture
def store() -> WorkflowStore:
    return WorkflowStore()


class TestWorkflowStore:
    def test_create_and_get(self, store, intent_findings_doc):
        created = store.create(parse_workflow(intent_findings_doc))
        assert created.date  # defaulted to today
        fetched = store.get("wf-intent-findings")
        assert fetched == created

    def test_create_keeps_given_date(self, store, intent_findings_doc):
        intent_findings_doc["date"] = "2024-03-01"
        assert store.create(parse_workflow(intent_findings_doc)).date == "2024-03-01"

    def test_create_requires_id(self, store):
        with pytest.raises(ValueError):
            store.create(parse_workflow({}))

    def test_duplicate_id(self, store, intent_findings_doc):
        store.create(parse_workflow(intent_findings_doc))
        with pytest.raises(WorkflowExistsError):
            store.create(parse_workflow(intent_findings_doc))

    def test_get_missing(self, store):
        with pytest.raises(WorkflowNotFoundError, match="nope"):
            store.get("nope")

    def test_returned_workflows_are_copies(self, store, intent_findings_doc):
        store.create(parse_workflow(intent_findings_doc))
        wf = store.get("wf-intent-findings")
        wf.nodes.clear()
        assert len(store.get("wf-intent-findings").nodes) == 2

    def test_list_in_insertion_order(self, store, intent_findings_doc, independent_doc):
        store.create(parse_workflow(independent_doc))
        store.create(parse_workflow(intent_findings_doc))
        assert [wf.workflow_id for wf in store.list()] == ["wf-independent", "wf-intent-findings"]

    def test_update(self, store, intent_findings_doc, independent_doc):
        store.create(parse_workflow(intent_findings_doc))
        updated = store.update("wf-intent-findings", parse_workflow(independent_doc))
        assert updated.workflow_id == "wf-intent-findings"
        assert [n.node_id for n in store.get("wf-intent-findings").nodes] == ["trends", "patterns"]

    def test_update_missing(self, store, independent_doc):
        with pytest.raises(WorkflowNotFoundError):
            store.update("nope", parse_workflow(independent_doc))

    def test_delete(self, store, intent_findings_doc):
        store.create(parse_workflow(intent_findings_doc))
        store.delete("wf-intent-findings")
        assert not store.exists("wf-intent-findings")
        with pytest.raises(WorkflowNotFoundError):
            store.delete("wf-intent-findings")
