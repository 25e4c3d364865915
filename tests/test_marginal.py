"""
Tests for bid ladders and marginal work prices.
"""
from datetime import date

import numpy as np
import pandas as pd
import pytest

from reservecrawler.exceptions import InsufficientCapacityError
from reservecrawler.marginal import BidLadder, build_bid_ladders, calc_marginal_work_prices

WEEK = (date(2017, 3, 6), date(2017, 3, 12))


def approx_table(start, values):
    """ApproxMinuteCall table with the given minute values."""
    minutes = pd.date_range(start=start, periods=len(values), freq='1min', tz='UTC')
    values = np.asarray(values, dtype=float)
    return pd.DataFrame({
        'DateTime': minutes,
        'neg_MW': np.minimum(values, 0.0),
        'pos_MW': np.maximum(values, 0.0),
        'approx_1min_call': values,
    })


def ladder_bids(direction, tariff, prices_and_caps, week=WEEK):
    return [(week[0], week[1], direction, tariff, price, cap) for price, cap in prices_and_caps]


# ============================================================================
# BID LADDER
# ============================================================================

class TestBidLadder:

    def test_pos_marginal_bid(self):
        ladder = BidLadder('POS', [10.0, 20.0], [5.0, 3.0])
        assert ladder.marginal_price(7.0) == 20.0

    def test_pos_exact_capacity_stays_on_bid(self):
        ladder = BidLadder('POS', [10.0, 20.0], [5.0, 3.0])
        assert ladder.marginal_price(5.0) == 10.0

    def test_insufficient_capacity(self):
        ladder = BidLadder('POS', [10.0, 20.0], [5.0, 3.0])
        with pytest.raises(InsufficientCapacityError) as exc_info:
            ladder.marginal_price(9.0)
        assert exc_info.value.available == pytest.approx(8.0)

    def test_pos_sorted_ascending(self):
        ladder = BidLadder('POS', [30.0, 10.0, 20.0], [1.0, 1.0, 1.0])
        assert ladder.work_prices.tolist() == [10.0, 20.0, 30.0]

    def test_neg_sorted_descending(self):
        """NEG bids are dispatched from the highest work price downwards."""
        ladder = BidLadder('NEG', [-50.0, 10.0, -5.0], [2.0, 2.0, 2.0])
        assert ladder.work_prices.tolist() == [10.0, -5.0, -50.0]
        assert ladder.marginal_price(-3.0) == -5.0

    def test_equal_prices_keep_download_order(self):
        ladder = BidLadder('POS', [20.0, 10.0, 20.0], [1.0, 2.0, 3.0])
        assert ladder.capacities.tolist() == [2.0, 1.0, 3.0]

    def test_price_monotonic_in_volume(self):
        ladder = BidLadder('POS', [5.0, 15.0, 25.0, 35.0], [10.0, 10.0, 10.0, 10.0])
        prices = [ladder.marginal_price(v) for v in np.linspace(0.5, 40.0, 50)]
        assert prices == sorted(prices)

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            BidLadder('UP', [1.0], [1.0])


class TestBuildLadders:

    def test_groups_by_week_direction_tariff(self, build_auctions):
        auctions = build_auctions(
            ladder_bids('POS', 'HT', [(10, 5), (20, 3)])
            + ladder_bids('POS', 'NT', [(1, 100)])
            + ladder_bids('NEG', 'HT', [(-5, 50)])
        )
        ladders = build_bid_ladders(auctions)

        assert set(ladders) == {
            (WEEK[0], 'POS', 'HT'), (WEEK[0], 'POS', 'NT'), (WEEK[0], 'NEG', 'HT'),
        }
        assert ladders[(WEEK[0], 'POS', 'HT')].total_capacity == pytest.approx(8.0)


# ============================================================================
# MARGINAL WORK PRICES
# ============================================================================

class TestMarginalWorkPrices:

    @pytest.fixture
    def auctions(self, build_auctions):
        bids = []
        for tariff in ('HT', 'NT'):
            bids += ladder_bids('POS', tariff, [(10, 5), (20, 3)])
            bids += ladder_bids('NEG', tariff, [(-5, 4), (-50, 4)])
        return build_auctions(bids)

    def test_prices_and_directions(self, auctions):
        # Tuesday 07.03.2017, 09:00 local (CET) is HT
        approx = approx_table('2017-03-07 08:00', [7.0, 2.0, -3.0, -6.0])

        result = calc_marginal_work_prices(approx, auctions)

        assert result['Direction'].tolist() == ['POS', 'POS', 'NEG', 'NEG']
        assert result['Tarif'].tolist() == ['HT'] * 4
        assert result['marginal_work_price'].tolist() == [20.0, 10.0, -5.0, -50.0]

    def test_zero_call_has_no_price(self, auctions):
        approx = approx_table('2017-03-07 08:00', [0.0, 1.0])

        result = calc_marginal_work_prices(approx, auctions)

        assert result['Direction'].tolist() == [None, 'POS']
        assert result['Direction'].iloc[0] is None
        assert np.isnan(result['marginal_work_price'].iloc[0])
        assert result['marginal_work_price'].iloc[1] == 10.0

    def test_tariff_follows_local_time(self, auctions):
        # 06:59 UTC is 07:59 CET (NT), 07:00 UTC is 08:00 CET (HT)
        approx = approx_table('2017-03-07 06:59', [1.0, 1.0])

        result = calc_marginal_work_prices(approx, auctions)

        assert result['Tarif'].tolist() == ['NT', 'HT']

    def test_weekend_is_nt(self, auctions):
        approx = approx_table('2017-03-11 10:00', [1.0])
        result = calc_marginal_work_prices(approx, auctions)
        assert result['Tarif'].iloc[0] == 'NT'

    def test_week_assigned_by_local_date(self, build_auctions):
        """23:30 UTC on Sunday 12.03. is already Monday 13.03. in Germany."""
        next_week = (date(2017, 3, 13), date(2017, 3, 19))
        auctions = build_auctions(
            ladder_bids('POS', 'NT', [(10, 5)])
            + ladder_bids('POS', 'NT', [(99, 5)], week=next_week)
        )
        approx = approx_table('2017-03-12 23:30', [1.0])

        result = calc_marginal_work_prices(approx, auctions)

        assert result['marginal_work_price'].iloc[0] == 99.0

    def test_missing_week(self, auctions):
        approx = approx_table('2017-04-04 08:00', [1.0])
        with pytest.raises(InsufficientCapacityError):
            calc_marginal_work_prices(approx, auctions)

    def test_volume_beyond_ladder(self, auctions):
        approx = approx_table('2017-03-07 08:00', [9.0])
        with pytest.raises(InsufficientCapacityError):
            calc_marginal_work_prices(approx, auctions)

    def test_output_columns(self, auctions):
        approx = approx_table('2017-03-07 08:00', [1.0])
        result = calc_marginal_work_prices(approx, auctions)
        assert list(result.columns) == [
            'DateTime', 'neg_MW', 'pos_MW', 'approx_1min_call',
            'Direction', 'Tarif', 'marginal_work_price',
        ]
