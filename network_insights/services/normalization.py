"""
Field normalization for licensee spreadsheet rows.

The spreadsheet is edited by hand and its headers drift over time
("Clientes Ativos", "clientesAtivos", "clientes_ativos", ...). This module maps
every accepted spelling to one canonical field through a single explicit table,
FIELD_MAPPING, and converts rows into LicenseeRecord objects once, at
ingestion. Nothing downstream ever looks at a raw header.

Key Features:
- Header matching ignores case, accents, whitespace and punctuation
- Numeric coercion with pandas (invalid or blank -> 0, negatives clipped)
- Status derivation: explicit Status column, then the Cancelado flag
- Graduation label -> ordered GraduationTier
- Rows without a parseable integer code are dropped and logged, never raised

Usage:
    from network_insights.services.normalization import normalize_rows

    records = normalize_rows([
        {"Codigo": "1001", "Nome": "Maria", "Clientes Ativos": "12", "Uf": "SP"},
    ])
"""

import logging
import unicodedata
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import ValidationError

from network_insights.models.enums import GraduationTier, LicenseeStatus
from network_insights.models.schemas import LicenseeRecord

logger = logging.getLogger(__name__)


# =============================================================================
# FIELD MAPPING
# Canonical field -> accepted header spellings. "cancelled" is an ingestion-only
# field feeding the status derivation.
# =============================================================================

FIELD_MAPPING: Dict[str, List[str]] = {
    'code': ['Codigo', 'Código', 'codigo', 'code', 'id'],
    'name': ['Nome', 'nome', 'name'],
    'status': ['Status', 'status', 'Situação'],
    'cancelled': ['Cancelado', 'cancelado', 'cancelled'],
    'active_clients': [
        'Clientes Ativos', 'clientesAtivos', 'clientes_ativos', 'activeClients',
    ],
    'telecom_clients': [
        'Clientes TELECOM', 'Clientes Telecom', 'clientesTelecom',
        'clientes_telecom', 'telecomClients',
    ],
    'active_licensees': [
        'Licenciados Ativos', 'licenciadosAtivos', 'licenciados_ativos',
        'activeLicensees',
    ],
    'graduation': ['Graduação', 'Graduacao', 'graduacao', 'graduation'],
    'sponsor_code': [
        'Idpatrocinador', 'Id Patrocinador', 'patrocinador_id', 'patrocinadorId',
        'sponsorCode', 'sponsor_code',
    ],
    'sponsor_name': ['Patrocinador', 'patrocinador', 'sponsorName'],
    'city': ['Cidade', 'cidade', 'city'],
    'state_code': ['Uf', 'UF', 'Estado', 'state', 'stateCode'],
    'activation_date': [
        'Data Ativo', 'Data Ativação', 'data_ativacao', 'dataAtivacao',
        'activationDate',
    ],
}

NUMERIC_COLUMNS = ['active_clients', 'telecom_clients', 'active_licensees']
TEXT_COLUMNS = ['name', 'status', 'cancelled', 'graduation', 'sponsor_name', 'city', 'state_code']

CANCELLED_FLAGS = {'S', 'SIM'}

STATUS_ALIASES: Dict[str, LicenseeStatus] = {
    'ativo': LicenseeStatus.ACTIVE,
    'active': LicenseeStatus.ACTIVE,
    'inativo': LicenseeStatus.INACTIVE,
    'inactive': LicenseeStatus.INACTIVE,
    'cancelado': LicenseeStatus.INACTIVE,
    'pendente': LicenseeStatus.PENDING,
    'pending': LicenseeStatus.PENDING,
}

# Checked in order; SENIOR must not shadow the higher tiers whose labels
# sometimes carry it as a suffix (e.g. "Gestor Senior").
TIER_KEYWORDS = [
    ('ACIONISTA', GraduationTier.SHAREHOLDER),
    ('SHAREHOLDER', GraduationTier.SHAREHOLDER),
    ('DIRETOR', GraduationTier.DIRECTOR),
    ('DIRECTOR', GraduationTier.DIRECTOR),
    ('EXECUTIVO', GraduationTier.EXECUTIVE),
    ('EXECUTIVE', GraduationTier.EXECUTIVE),
    ('GESTOR', GraduationTier.MANAGER),
    ('MANAGER', GraduationTier.MANAGER),
    ('SENIOR', GraduationTier.SENIOR),
    ('CONSULTOR', GraduationTier.CONSULTANT),
    ('CONSULTANT', GraduationTier.CONSULTANT),
]


def strip_accents(text: str) -> str:
    """Remove diacritics: 'Graduação' -> 'Graduacao'."""
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def header_key(header: str) -> str:
    """Comparison key for a header: accent-free, lowercase, alphanumerics only."""
    return ''.join(ch for ch in strip_accents(str(header)).lower() if ch.isalnum())


_HEADER_LOOKUP: Dict[str, str] = {
    header_key(spelling): field
    for field, spellings in FIELD_MAPPING.items()
    for spelling in spellings
}


def resolve_header(header: str) -> Optional[str]:
    """
    Map a raw spreadsheet header to its canonical field.

    Returns:
        Canonical field name, or None when the header is not mapped.
    """
    return _HEADER_LOOKUP.get(header_key(header))


def parse_graduation_tier(label: Optional[str]) -> GraduationTier:
    """
    Parse a free-text graduation label into a GraduationTier.

    Unknown or blank labels map to the entry level (CONSULTANT).
    """
    if not label:
        return GraduationTier.CONSULTANT

    normalized = strip_accents(str(label)).upper()
    for keyword, tier in TIER_KEYWORDS:
        if keyword in normalized:
            return tier
    return GraduationTier.CONSULTANT


def derive_status(status: Optional[str], cancelled: Optional[str]) -> LicenseeStatus:
    """
    Derive the licensee status.

    An explicit, recognized Status value wins. Otherwise a Cancelado flag of
    S or SIM means inactive; anything else means active.
    """
    if status:
        explicit = STATUS_ALIASES.get(strip_accents(str(status)).strip().lower())
        if explicit is not None:
            return explicit

    if cancelled and strip_accents(str(cancelled)).strip().upper() in CANCELLED_FLAGS:
        return LicenseeStatus.INACTIVE

    return LicenseeStatus.ACTIVE


def _normalize_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename mapped headers to canonical fields and coerce column types.

    Unmapped columns are dropped. When two spellings of the same field are
    present, the leftmost column wins.

    Args:
        df: Raw rows, one column per spreadsheet header

    Returns:
        DataFrame with exactly the canonical columns
    """
    renamed = {}
    for column in df.columns:
        field = resolve_header(column)
        if field is not None:
            renamed[column] = field
        else:
            logger.debug(f"Ignoring unmapped column: {column!r}")

    df_normalized = df[list(renamed)].rename(columns=renamed)
    df_normalized = df_normalized.loc[:, ~df_normalized.columns.duplicated()].copy()

    for field in FIELD_MAPPING:
        if field not in df_normalized.columns:
            df_normalized[field] = None

    df_normalized['code'] = pd.to_numeric(df_normalized['code'], errors='coerce')
    df_normalized['sponsor_code'] = pd.to_numeric(df_normalized['sponsor_code'], errors='coerce')

    for col in NUMERIC_COLUMNS:
        df_normalized[col] = (
            pd.to_numeric(df_normalized[col], errors='coerce')
            .fillna(0)
            .clip(lower=0)
            .astype(int)
        )

    for col in TEXT_COLUMNS:
        df_normalized[col] = df_normalized[col].fillna('').astype(str).str.strip()

    df_normalized['state_code'] = df_normalized['state_code'].str.upper()

    df_normalized['activation_date'] = pd.to_datetime(
        df_normalized['activation_date'], errors='coerce', dayfirst=True
    )

    return df_normalized


def _valid_code_mask(codes: pd.Series) -> pd.Series:
    return codes.notna() & (codes == codes.round())


def normalize_rows(rows: List[Dict[str, Any]]) -> List[LicenseeRecord]:
    """
    Convert raw spreadsheet rows into LicenseeRecord objects.

    Args:
        rows: One dict per spreadsheet row, keyed by raw header

    Returns:
        Normalized records in source order. Rows without a parseable integer
        code are dropped and logged.
    """
    if not rows:
        return []

    df = _normalize_dataframe(pd.DataFrame(rows))

    valid_mask = _valid_code_mask(df['code'])
    dropped = int((~valid_mask).sum())
    if dropped:
        logger.warning(f"Dropped {dropped} rows without a parseable licensee code")
    df = df[valid_mask]

    records: List[LicenseeRecord] = []
    for row in df.to_dict(orient='records'):
        sponsor_code = row['sponsor_code']
        activation_date = row['activation_date']

        try:
            record = LicenseeRecord(
                code=int(row['code']),
                name=row['name'],
                status=derive_status(row['status'], row['cancelled']),
                active_clients=row['active_clients'],
                telecom_clients=row['telecom_clients'],
                active_licensees=row['active_licensees'],
                graduation=row['graduation'],
                graduation_tier=parse_graduation_tier(row['graduation']),
                sponsor_code=None if pd.isna(sponsor_code) else int(sponsor_code),
                sponsor_name=row['sponsor_name'] or None,
                city=row['city'],
                state_code=row['state_code'],
                activation_date=None if pd.isna(activation_date) else activation_date.to_pydatetime(),
            )
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping malformed row for code {row['code']}: {e}")
            continue

        records.append(record)

    logger.info(f"Normalized {len(records)} licensee records from {len(rows)} rows")
    return records
