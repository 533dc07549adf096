"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Dict

import pytest

from flowkeeper.core.sync import FlowSync
from flowkeeper.sources import FileFlowSource
from flowkeeper.storage import JsonMappingStore

FLOW_ID = "approval-flow"


@pytest.fixture
def sample_definition() -> Dict:
    """Provide a small workflow definition with a mix of structural and sensitive values."""
    return {
        "$schema": "https://schema.management.azure.com/providers/Microsoft.Logic/schemas/2016-06-01/workflowdefinition.json#",
        "contentVersion": "1.0.0.0",
        "triggers": {
            "manual": {
                "type": "Request",
                "kind": "Http",
                "inputs": {"schema": {"type": "object"}},
            }
        },
        "actions": {
            "Send_email": {
                "type": "OpenApiConnection",
                "inputs": {
                    "method": "POST",
                    "to": "alice@contoso.com",
                    "subject": "Weekly report ready",
                    "uri": "https://contoso.sharepoint.com/sites/finance",
                },
                "runAfter": {},
            },
            "Compose_id": {
                "type": "Compose",
                "inputs": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "runAfter": {"Send_email": ["Succeeded"]},
            },
            "Notify": {
                "type": "Http",
                "inputs": {
                    "method": "POST",
                    "uri": "@{variables('hook')}",
                    "body": {
                        "owner": "bob@contoso.com",
                        "retries": 3,
                        "enabled": True,
                        "note": None,
                    },
                },
            },
        },
        "outputs": {},
    }


@pytest.fixture
def sample_secrets() -> list:
    """Values of sample_definition that must never reach the local file."""
    return [
        "alice@contoso.com",
        "bob@contoso.com",
        "https://contoso.sharepoint.com/sites/finance",
        "0f8fad5b-d9cb-469f-a165-70867728950e",
        "Weekly report ready",
    ]


@pytest.fixture
def sample_definition_text(sample_definition) -> str:
    """Provide sample_definition as JSON text."""
    return json.dumps(sample_definition, indent=2)


@pytest.fixture
def store_path(tmp_path) -> Path:
    """Provide a mapping store path inside a temporary directory."""
    return tmp_path / "store" / "secrets.json"


@pytest.fixture
def store(store_path) -> JsonMappingStore:
    """Provide an empty JSON mapping store."""
    return JsonMappingStore(store_path)


@pytest.fixture
def remote_dir(tmp_path, sample_definition_text) -> Path:
    """Provide a directory acting as the remote side, holding one flow."""
    root = tmp_path / "remote"
    root.mkdir()
    (root / f"{FLOW_ID}.json").write_text(sample_definition_text, encoding="utf-8")
    return root


@pytest.fixture
def file_source(remote_dir) -> FileFlowSource:
    """Provide a file source over remote_dir."""
    return FileFlowSource(remote_dir)


@pytest.fixture
def sync(file_source, store, tmp_path) -> FlowSync:
    """Provide a FlowSync wired to the file source and a temporary store."""
    return FlowSync(
        source=file_source,
        store=store,
        retry_delay=0.01,
        backup_dir=tmp_path / "backups",
    )


@pytest.fixture
def local_path(tmp_path) -> Path:
    """Provide the path of the local redacted copy."""
    return tmp_path / "work" / "approval.json"
