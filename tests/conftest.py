"""
Shared fixtures: canonical table builders and a fake portal client.
"""
import os
import sys

import numpy as np
import pandas as pd
import pytest

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))


# ============================================================================
# TABLE BUILDERS
# ============================================================================

def _build_needs(start, minute_values, samples_per_minute=15):
    """4-second needs whose samples are constant within each minute."""
    minute_values = np.asarray(minute_values, dtype=float)
    timestamps = pd.date_range(start=start, periods=len(minute_values) * samples_per_minute,
                               freq='4s', tz='UTC')
    return pd.DataFrame({
        'DateTime': timestamps,
        'MW': np.repeat(minute_values, samples_per_minute),
    })


def _build_calls(start, neg, pos):
    """15-minute call windows starting at start."""
    windows = pd.date_range(start=start, periods=len(pos), freq='15min', tz='UTC')
    return pd.DataFrame({
        'DateTime': windows,
        'neg_MW': np.asarray(neg, dtype=float),
        'pos_MW': np.asarray(pos, dtype=float),
    })


def _build_auctions(bids):
    """bids: list of (date_from, date_to, direction, tariff, work_price, capacity)."""
    return pd.DataFrame([
        {
            'date_from': date_from,
            'date_to': date_to,
            'Direction': direction,
            'Tarif': tariff,
            'power_price': 100.0,
            'work_price': float(work_price),
            'offered_power_MW': float(capacity),
        }
        for date_from, date_to, direction, tariff, work_price, capacity in bids
    ])


@pytest.fixture
def build_needs():
    return _build_needs


@pytest.fixture
def build_calls():
    return _build_calls


@pytest.fixture
def build_auctions():
    return _build_auctions


# ============================================================================
# FAKE PORTAL
# ============================================================================

def _de(value):
    """Format a float the way the portals do (decimal comma)."""
    return f"{value:.1f}".replace('.', ',')


def needs_csv_for_day(day='07.03.2017'):
    """One day of 4-second needs; the value depends on the minute within the window."""
    lines = ["Datum;Uhrzeit;MW"]
    for second in range(0, 24 * 3600, 4):
        hours, rest = divmod(second, 3600)
        minutes, seconds = divmod(rest, 60)
        value = ((minutes % 15) - 7) * 10 + 20
        lines.append(f"{day};{hours:02d}:{minutes:02d}:{seconds:02d};{_de(value)}")
    return "\n".join(lines) + "\n"


def calls_csv_for_day(day='07.03.2017'):
    lines = [
        "Netzregelverbund;SRL",
        f"Zeitraum;{day};{day}",
        "Datum;von;bis;Produkt;NEG [MW];POS [MW]",
    ]
    for window in range(96):
        hours, minutes = divmod(window * 15, 60)
        end_hours, end_minutes = divmod(window * 15 + 15, 60)
        lines.append(
            f"{day};{hours:02d}:{minutes:02d};{end_hours:02d}:{end_minutes:02d};SRL;"
            f"{_de(-12.5)};{_de(100.0)}"
        )
    return "\n".join(lines) + "\n"


AUCTION_HEADER = (
    "DATUM_VON;DATUM_BIS;PRODUKT;LEISTUNGSPREIS [EUR/MW];"
    "ARBEITSPREIS [EUR/MWh];ANGEBOTENE LEISTUNG [MW]"
)


def auction_rows(date_from='06.03.2017', date_to='12.03.2017'):
    rows = []
    for product in ('POS_HT', 'POS_NT'):
        rows.append(f"{date_from};{date_to};{product};500,0;10,0;50")
        rows.append(f"{date_from};{date_to};{product};400,0;30,0;50")
    for product in ('NEG_HT', 'NEG_NT'):
        rows.append(f"{date_from};{date_to};{product};300,0;-5,0;50")
        rows.append(f"{date_from};{date_to};{product};200,0;-50,0;50")
    return rows


class FakeClient:
    """Stands in for ReserveDataClient and serves canned CSV downloads."""

    def __init__(self, needs_csv=None, calls_csv=None, auctions_csv=None):
        self.needs_csv = needs_csv if needs_csv is not None else needs_csv_for_day()
        self.calls_csv = calls_csv if calls_csv is not None else calls_csv_for_day()
        self.auctions_csv = auctions_csv
        self.requests = []

    def fetch_needs_month(self, year, month):
        self.requests.append(('needs', year, month))
        return self.needs_csv

    def fetch_calls(self, start_date, end_date, uenb, reserve_type):
        self.requests.append(('calls', start_date, end_date, uenb, reserve_type))
        return self.calls_csv

    def fetch_auctions(self, week_start, week_end, product):
        self.requests.append(('auctions', week_start, week_end, product))
        if self.auctions_csv is not None:
            return self.auctions_csv
        rows = auction_rows(week_start.strftime('%d.%m.%Y'), week_end.strftime('%d.%m.%Y'))
        return "\n".join([AUCTION_HEADER] + rows) + "\n"


@pytest.fixture
def fake_client():
    return FakeClient()
