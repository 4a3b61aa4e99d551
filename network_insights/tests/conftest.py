"""
Pytest Configuration and Shared Fixtures for Network Insights Tests.

This module provides fixtures and configuration for all tests, supporting:
- Async test execution with pytest-asyncio
- A small hand-checked licensee network (sample_records)
- Settings isolated from the developer's environment and .env file
- A mock Google Sheets service
- A FastAPI TestClient wired to in-memory records through dependency overrides

Sample network (code, status, clients/telecom/recruits, tier, state, sponsor):

    1  Ana     active    150/30/5  DIRECTOR     SP  -
    2  Bruno   active     60/10/2  MANAGER      SP  1
    3  Carla   active      3/0/0   CONSULTANT   RJ  1
    4  Diego   active      8/0/0   SENIOR       RJ  2
    5  Elisa   inactive    0/0/0   CONSULTANT   MG  2
    6  Fabio   active     20/5/1   EXECUTIVE    MG  999 (outside the dataset)
"""

from typing import Generator, List
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from network_insights.core.cache import TTLCache
from network_insights.core.config import Settings
from network_insights.models import GraduationTier, LicenseeRecord, LicenseeStatus
from network_insights.services.record_source import RecordSource
from network_insights.tests.factories import FakeClock, make_record


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks tests requiring external services
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests requiring external service connectivity'
    )


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

@pytest.fixture
def sample_records() -> List[LicenseeRecord]:
    """The six-licensee network described in the module docstring."""
    return [
        make_record(1, None, 'Ana', active_clients=150, telecom_clients=30, active_licensees=5,
                    graduation_tier=GraduationTier.DIRECTOR, state_code='SP', city='Sao Paulo'),
        make_record(2, 1, 'Bruno', active_clients=60, telecom_clients=10, active_licensees=2,
                    graduation_tier=GraduationTier.MANAGER, state_code='SP', city='Santos'),
        make_record(3, 1, 'Carla', active_clients=3,
                    graduation_tier=GraduationTier.CONSULTANT, state_code='RJ', city='Niteroi'),
        make_record(4, 2, 'Diego', active_clients=8,
                    graduation_tier=GraduationTier.SENIOR, state_code='RJ', city='Rio de Janeiro'),
        make_record(5, 2, 'Elisa', status=LicenseeStatus.INACTIVE,
                    graduation_tier=GraduationTier.CONSULTANT, state_code='MG', city='Belo Horizonte'),
        make_record(6, 999, 'Fabio', active_clients=20, telecom_clients=5, active_licensees=1,
                    graduation_tier=GraduationTier.EXECUTIVE, state_code='MG', city='Uberlandia'),
    ]


@pytest.fixture
def sample_rows() -> List[dict]:
    """Raw spreadsheet rows with drifting header spellings."""
    return [
        {
            'Codigo': '100', 'Nome': 'Maria Silva', 'Cancelado': 'N',
            'Clientes Ativos': '42', 'Clientes TELECOM': '7', 'Licenciados Ativos': '3',
            'Graduação': 'Gestor', 'Idpatrocinador': '', 'Cidade': 'Campinas', 'Uf': 'sp',
            'Data Ativo': '15/03/2023',
        },
        {
            'Codigo': '101', 'Nome': 'João Souza', 'Cancelado': 'S',
            'Clientes Ativos': '', 'Clientes TELECOM': 'abc', 'Licenciados Ativos': '-2',
            'Graduação': 'Consultor', 'Idpatrocinador': '100', 'Cidade': 'Santos', 'Uf': 'SP',
            'Data Ativo': '',
        },
        {
            'Codigo': 'n/a', 'Nome': 'Broken Row', 'Cancelado': 'N',
            'Clientes Ativos': '10', 'Clientes TELECOM': '1', 'Licenciados Ativos': '0',
            'Graduação': 'Diretor', 'Idpatrocinador': '100', 'Cidade': 'Recife', 'Uf': 'PE',
            'Data Ativo': '',
        },
    ]


# ============================================================
# SETTINGS FIXTURE
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Settings built without reading .env, with every external integration off.

    Init arguments take precedence over environment variables, so the
    developer's shell configuration cannot leak into tests.
    """
    return Settings(
        _env_file=None,
        google_application_credentials=None,
        google_sheets_spreadsheet_id=None,
        openai_api_key=None,
        openai_model='gpt-4o',
        records_cache_ttl_seconds=300,
        analytics_cache_ttl_seconds=600,
        metrics_cache_ttl_seconds=60,
    )


# ============================================================
# CACHE AND SOURCE FIXTURES
# ============================================================

@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_clock: FakeClock) -> TTLCache:
    return TTLCache(default_ttl_seconds=300, clock=fake_clock)


@pytest.fixture
def record_source(sample_records: List[LicenseeRecord], cache: TTLCache) -> RecordSource:
    return RecordSource.from_records(sample_records, cache=cache)


# ============================================================
# EXTERNAL SERVICE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_sheets_service() -> Mock:
    """
    Mock Google Sheets API service.

    Simulates service.spreadsheets().values().get(...).execute() returning a
    header row and two data rows, the second one short (trailing empty cells
    are omitted by the Sheets API).
    """
    service = Mock()
    get_request = Mock()
    get_request.execute = Mock(return_value={
        'range': 'Sheet1!A1:AQ3',
        'values': [
            ['Codigo', 'Nome', 'Clientes Ativos', 'Uf'],
            ['1', 'Ana', '150', 'SP'],
            ['2', 'Bruno'],
        ],
    })
    service.spreadsheets.return_value.values.return_value.get = Mock(return_value=get_request)
    return service


# ============================================================
# API CLIENT FIXTURE
# ============================================================

@pytest.fixture
def api_client(
    record_source: RecordSource,
    cache: TTLCache,
    test_settings: Settings,
) -> Generator[TestClient, None, None]:
    """
    TestClient over the sample network.

    The lifespan is not entered, so nothing touches Google Sheets or OpenAI;
    the shared objects come from dependency overrides instead.
    """
    from network_insights.core.dependencies import (
        get_cache,
        get_record_source,
        get_settings_dependency,
    )
    from network_insights.main import app

    app.dependency_overrides[get_record_source] = lambda: record_source
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_settings_dependency] = lambda: test_settings

    yield TestClient(app)

    app.dependency_overrides.clear()
