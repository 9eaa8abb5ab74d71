"""
Pytest configuration for API tests

Protocol artifacts are written to a temporary directory and the settings are
pointed at them, so the application lifespan loads real (test) blueprints.
The issuance service is replaced through FastAPI dependency overrides.
"""

import json
import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.config import settings
from api.dependencies.protocol import get_issuance_service
from api.enums import NetworkType
from api.main import app
from api.tests.mocks import MockIssuanceService
from tests.factories import PROTOCOL_TEMPLATES, make_descriptor_dict


ACTIVE_VERSION = "aa" * 32
PINNED_VERSION = "bb" * 32

DUMMY_SUBSTANDARD = Path(__file__).parent.parent.parent / "resources" / "substandards" / "dummy"


@pytest.fixture
def protocol_dir(tmp_path):
    """Blueprint, preview bootstrap file and substandards in a temporary directory"""
    blueprint = {
        "preamble": {"title": "programmable-tokens", "plutusVersion": "v3"},
        "validators": [
            {"title": title, "compiledCode": bytes(script).hex()} for title, script in PROTOCOL_TEMPLATES.items()
        ],
    }
    (tmp_path / "plutus.json").write_text(json.dumps(blueprint))

    descriptors = [make_descriptor_dict(tx_hash=ACTIVE_VERSION), make_descriptor_dict(tx_hash=PINNED_VERSION)]
    (tmp_path / "protocol-bootstraps-preview.json").write_text(json.dumps(descriptors))

    shutil.copytree(DUMMY_SUBSTANDARD, tmp_path / "substandards" / "dummy")
    return tmp_path


@pytest.fixture
def configured_settings(protocol_dir, monkeypatch):
    """Point the settings at the temporary protocol artifacts"""
    monkeypatch.setattr(settings, "network", NetworkType.PREVIEW)
    monkeypatch.setattr(settings, "blueprint_path", str(protocol_dir / "plutus.json"))
    monkeypatch.setattr(settings, "bootstrap_dir", str(protocol_dir))
    monkeypatch.setattr(settings, "substandards_dir", str(protocol_dir / "substandards"))
    monkeypatch.setattr(settings, "default_protocol_tx_hash", None)
    return settings


@pytest.fixture
def mock_service():
    """Issuance service returning canned outcomes"""
    return MockIssuanceService()


@pytest.fixture
def client(configured_settings, mock_service):
    """Create FastAPI test client with the issuance service overridden"""
    app.dependency_overrides[get_issuance_service] = lambda: mock_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
