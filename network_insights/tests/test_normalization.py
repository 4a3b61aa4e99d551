"""
Unit tests for spreadsheet row normalization.

Tests cover:
- The header mapping table and header spelling tolerance
- Status derivation from the Status column and the Cancelado flag
- Graduation label parsing
- Numeric coercion, code validation and row dropping
"""

from datetime import datetime

import pytest

from network_insights.models import GraduationTier, LicenseeStatus
from network_insights.services.normalization import (
    FIELD_MAPPING,
    derive_status,
    header_key,
    normalize_rows,
    parse_graduation_tier,
    resolve_header,
)


# =============================================================================
# FIELD MAPPING TESTS
# =============================================================================


class TestFieldMapping:
    """Tests for FIELD_MAPPING and resolve_header."""

    def test_every_spelling_resolves_to_its_field(self):
        """No spelling is claimed by two canonical fields."""
        for field, spellings in FIELD_MAPPING.items():
            for spelling in spellings:
                assert resolve_header(spelling) == field, spelling

    @pytest.mark.parametrize("header", [
        'Clientes Ativos', 'clientesAtivos', 'clientes_ativos',
        'CLIENTES  ATIVOS', ' clientes-ativos ',
    ])
    def test_header_spelling_drift(self, header):
        assert resolve_header(header) == 'active_clients'

    def test_accented_headers(self):
        assert resolve_header('Graduação') == 'graduation'
        assert resolve_header('GRADUACAO') == 'graduation'
        assert resolve_header('Código') == 'code'

    def test_sponsor_id_and_name_are_distinct(self):
        assert resolve_header('Idpatrocinador') == 'sponsor_code'
        assert resolve_header('Patrocinador') == 'sponsor_name'

    def test_unknown_header(self):
        assert resolve_header('Observações') is None

    def test_header_key(self):
        assert header_key('Data Ativação') == 'dataativacao'


# =============================================================================
# STATUS AND TIER TESTS
# =============================================================================


class TestDeriveStatus:
    """Tests for derive_status."""

    @pytest.mark.parametrize("status,cancelled,expected", [
        ('Ativo', None, LicenseeStatus.ACTIVE),
        ('Inativo', None, LicenseeStatus.INACTIVE),
        ('Pendente', 'S', LicenseeStatus.PENDING),
        ('Ativo', 'S', LicenseeStatus.ACTIVE),
        (None, 'S', LicenseeStatus.INACTIVE),
        ('', 'sim', LicenseeStatus.INACTIVE),
        ('', 'N', LicenseeStatus.ACTIVE),
        ('', '', LicenseeStatus.ACTIVE),
        ('unrecognized', 'SIM', LicenseeStatus.INACTIVE),
    ])
    def test_status_derivation(self, status, cancelled, expected):
        assert derive_status(status, cancelled) == expected


class TestParseGraduationTier:
    """Tests for parse_graduation_tier."""

    @pytest.mark.parametrize("label,expected", [
        ('Consultor', GraduationTier.CONSULTANT),
        ('Sênior', GraduationTier.SENIOR),
        ('Gestor', GraduationTier.MANAGER),
        ('Gestor Senior', GraduationTier.MANAGER),
        ('Executivo', GraduationTier.EXECUTIVE),
        ('DIRETOR', GraduationTier.DIRECTOR),
        ('Diretor Executivo', GraduationTier.DIRECTOR),
        ('Acionista', GraduationTier.SHAREHOLDER),
        ('Trainee', GraduationTier.CONSULTANT),
        ('', GraduationTier.CONSULTANT),
        (None, GraduationTier.CONSULTANT),
    ])
    def test_labels(self, label, expected):
        assert parse_graduation_tier(label) == expected

    def test_tiers_are_ordered(self):
        assert GraduationTier.CONSULTANT.rank < GraduationTier.SENIOR.rank
        assert GraduationTier.DIRECTOR.rank < GraduationTier.SHAREHOLDER.rank
        assert GraduationTier.CONSULTANT.is_entry_level
        assert not GraduationTier.SENIOR.is_entry_level


# =============================================================================
# ROW NORMALIZATION TESTS
# =============================================================================


class TestNormalizeRows:
    """Tests for normalize_rows."""

    def test_rows_without_integer_code_are_dropped(self, sample_rows):
        records = normalize_rows(sample_rows)

        assert [r.code for r in records] == [100, 101]

    def test_fields_are_normalized(self, sample_rows):
        maria = normalize_rows(sample_rows)[0]

        assert maria.name == 'Maria Silva'
        assert maria.status == LicenseeStatus.ACTIVE
        assert maria.active_clients == 42
        assert maria.telecom_clients == 7
        assert maria.active_licensees == 3
        assert maria.graduation == 'Gestor'
        assert maria.graduation_tier == GraduationTier.MANAGER
        assert maria.sponsor_code is None
        assert maria.state_code == 'SP'
        assert maria.activation_date == datetime(2023, 3, 15)

    def test_invalid_numbers_become_zero(self, sample_rows):
        joao = normalize_rows(sample_rows)[1]

        assert joao.status == LicenseeStatus.INACTIVE
        assert joao.active_clients == 0
        assert joao.telecom_clients == 0
        assert joao.active_licensees == 0
        assert joao.sponsor_code == 100
        assert joao.activation_date is None

    def test_missing_columns_get_defaults(self):
        records = normalize_rows([{'code': '7'}])

        assert len(records) == 1
        record = records[0]
        assert record.name == ''
        assert record.status == LicenseeStatus.ACTIVE
        assert record.active_clients == 0
        assert record.graduation_tier == GraduationTier.CONSULTANT
        assert record.sponsor_code is None

    def test_fractional_code_is_dropped(self):
        records = normalize_rows([{'Codigo': '12.5'}, {'Codigo': '13'}])

        assert [r.code for r in records] == [13]

    def test_leftmost_duplicate_header_wins(self):
        records = normalize_rows([{'Codigo': '1', 'code': '2', 'Nome': 'Ana'}])

        assert [r.code for r in records] == [1]

    def test_unmapped_columns_are_ignored(self):
        records = normalize_rows([{'Codigo': '1', 'Observações': 'VIP'}])

        assert records[0].code == 1

    def test_explicit_status_column(self):
        records = normalize_rows([{'Codigo': '1', 'Status': 'Inativo', 'Cancelado': 'N'}])

        assert records[0].status == LicenseeStatus.INACTIVE

    def test_empty_input(self):
        assert normalize_rows([]) == []
