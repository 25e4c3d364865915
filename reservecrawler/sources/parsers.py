"""
Parsers for the CSV downloads of the reserve data portals.

The portals deliver semicolon-separated files with a few lines of metadata
before the header row, e.g. a call download:

    Netzregelverbund;SRL;
    Zeitraum;07.03.2017;14.03.2017
    Datum;von;bis;Produkt;NEG [MW];POS [MW]
    07.03.2017;00:00;00:15;SRL;-123,456;45,678

Parsers locate the header row, map the portal's column names to the raw
column names of schema.RAW_*_COLUMNS and return all values as strings.
Numeric and date conversion is left to the preprocessors.
"""

import csv
import io
import re
from typing import Dict, List, Optional

import pandas as pd

from ..exceptions import ParseError
from ..schema import (
    RAW_NEEDS_COLUMNS, RAW_CALLS_COLUMNS, RAW_AUCTIONS_COLUMNS, select_columns
)


# Portal header names per raw column (normalized, see _normalize_header)
NEEDS_ALIASES = {
    'date': ['DATUM', 'DATE', 'DATUM/UHRZEIT', 'DATETIME', 'ZEITSTEMPEL'],
    'time': ['UHRZEIT', 'ZEIT', 'TIME'],
    'value': ['MW', 'WERT', 'VALUE', 'BEDARF', 'SRL_BEDARF'],
}

CALLS_ALIASES = {
    'date': ['DATUM', 'DATE'],
    'time_from': ['VON', 'UHRZEIT_VON', 'ZEIT_VON', 'FROM', 'TIME_FROM'],
    'time_to': ['BIS', 'UHRZEIT_BIS', 'ZEIT_BIS', 'TO', 'TIME_TO'],
    'product': ['PRODUKT', 'PRODUKTNAME', 'PRODUCT', 'PRODUCT_NAME'],
    'neg': ['NEG', 'NEGATIV', 'NEGATIVE'],
    'pos': ['POS', 'POSITIV', 'POSITIVE'],
}

AUCTIONS_ALIASES = {
    'date_from': ['DATUM_VON', 'DATE_FROM', 'VON'],
    'date_to': ['DATUM_BIS', 'DATE_TO', 'BIS'],
    'product': ['PRODUKT', 'PRODUCT', 'PRODUKTNAME'],
    'power_price': ['LEISTUNGSPREIS', 'CAPACITY_PRICE', 'POWER_PRICE'],
    'work_price': ['ARBEITSPREIS', 'ENERGY_PRICE', 'WORK_PRICE'],
    'offered_power': ['ANGEBOTENE_LEISTUNG', 'OFFERED_CAPACITY', 'OFFERED_POWER'],
}


def _normalize_header(cell: str) -> str:
    """Normalize a header cell: 'NEG [MW]' -> 'NEG', 'Datum von' -> 'DATUM_VON'."""
    cell = re.sub(r'\[.*?\]|\(.*?\)', '', cell)
    cell = cell.strip().upper()
    return re.sub(r'[\s\-]+', '_', cell)


def _read_rows(text: str) -> List[List[str]]:
    """Split CSV text into stripped rows, dropping blank lines and trailing empty cells."""
    rows = []
    for row in csv.reader(io.StringIO(text), delimiter=';'):
        cells = [c.strip() for c in row]
        while cells and cells[-1] == '':
            cells.pop()
        if cells:
            rows.append(cells)
    return rows


def _locate_header(rows: List[List[str]], aliases: Dict[str, List[str]], key: str) -> int:
    """
    Find the index of the header row.

    The header is the first row containing one of the aliases of key.

    Raises:
        ParseError: If no header row exists
    """
    wanted = set(aliases[key])
    for index, row in enumerate(rows):
        if wanted.intersection(_normalize_header(c) for c in row):
            return index
    raise ParseError(f"No header row with a '{key}' column found")


def _map_columns(header: List[str], aliases: Dict[str, List[str]],
                 optional: Optional[List[str]] = None) -> Dict[str, Optional[int]]:
    """
    Map raw column names to positions in the header row.

    Raises:
        ParseError: If a required column has no match
    """
    optional = optional or []
    normalized = [_normalize_header(c) for c in header]
    positions = {}
    for column, names in aliases.items():
        position = next((normalized.index(n) for n in names if n in normalized), None)
        if position is None and column not in optional:
            raise ParseError(f"Column '{column}' not found in header {header}")
        positions[column] = position
    return positions


def _rows_to_frame(rows: List[List[str]], positions: Dict[str, Optional[int]],
                   columns: List[str], table: str) -> pd.DataFrame:
    """Build a string DataFrame from data rows using the mapped positions."""
    records = []
    for row in rows:
        record = {}
        for column in columns:
            position = positions.get(column)
            record[column] = row[position] if position is not None and position < len(row) else ''
        records.append(record)

    df = pd.DataFrame.from_records(records, columns=columns)
    return select_columns(df.astype(str), columns, table)


def parse_needs_csv(text: str) -> pd.DataFrame:
    """
    Parse a monthly 4-second needs file.

    Some archive files carry date and time in one column
    ("01.03.2017 00:00:04;123,4"); those are split here.

    Args:
        text: CSV content

    Returns:
        DataFrame with columns date, time, value (strings)
    """
    rows = _read_rows(text)
    if not rows:
        return pd.DataFrame(columns=RAW_NEEDS_COLUMNS)

    header_index = _locate_header(rows, NEEDS_ALIASES, 'date')
    header = rows[header_index]
    data = rows[header_index + 1:]

    normalized = [_normalize_header(c) for c in header]
    combined = not set(NEEDS_ALIASES['time']).intersection(normalized)

    if combined:
        # Date and time share the first column
        positions = _map_columns(header, NEEDS_ALIASES, optional=['time'])
        split_rows = []
        for row in data:
            parts = row[positions['date']].split(' ', 1)
            if len(parts) != 2:
                raise ParseError("Expected 'DD.MM.YYYY HH:MM:SS' timestamp", row={'row': row})
            split_rows.append([parts[0], parts[1], row[positions['value']]])
        return _rows_to_frame(split_rows, {'date': 0, 'time': 1, 'value': 2},
                              RAW_NEEDS_COLUMNS, 'raw needs')

    positions = _map_columns(header, NEEDS_ALIASES)
    return _rows_to_frame(data, positions, RAW_NEEDS_COLUMNS, 'raw needs')


def parse_calls_csv(text: str) -> pd.DataFrame:
    """
    Parse a 15-minute call download.

    Args:
        text: CSV content

    Returns:
        DataFrame with columns date, time_from, time_to, product, neg, pos (strings)
    """
    rows = _read_rows(text)
    if not rows:
        return pd.DataFrame(columns=RAW_CALLS_COLUMNS)

    header_index = _locate_header(rows, CALLS_ALIASES, 'date')
    positions = _map_columns(rows[header_index], CALLS_ALIASES, optional=['product', 'time_to'])
    return _rows_to_frame(rows[header_index + 1:], positions, RAW_CALLS_COLUMNS, 'raw calls')


def parse_auctions_csv(text: str) -> pd.DataFrame:
    """
    Parse a tender results download of one auction week.

    Args:
        text: CSV content

    Returns:
        DataFrame with columns date_from, date_to, product, power_price,
        work_price, offered_power (strings)
    """
    rows = _read_rows(text)
    if not rows:
        return pd.DataFrame(columns=RAW_AUCTIONS_COLUMNS)

    header_index = _locate_header(rows, AUCTIONS_ALIASES, 'date_from')
    positions = _map_columns(rows[header_index], AUCTIONS_ALIASES)
    return _rows_to_frame(rows[header_index + 1:], positions, RAW_AUCTIONS_COLUMNS, 'raw auctions')
