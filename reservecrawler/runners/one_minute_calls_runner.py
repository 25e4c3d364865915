"""
Approximated 1-Minute Calls Runner.

Fetches the 4-second needs and the 15-minute calls of one operator,
approximates the 1-minute calls and writes them as CSV.

Usage:
    reservecrawler-1min-calls --start-date 2017-03-07 --end-date 2017-03-14 --uenb 6 --reserve-type SRL
    reservecrawler-1min-calls --start-date 07.03.2017 --uenb 4 --resolution 0.001 --dry-run
"""

from typing import Optional

from ..constants import validate_uenb, validate_call_reserve_type
from ..pipeline import get_reserve_needs, get_reserve_calls, get_one_minute_calls
from ..sources.client import ReserveDataClient
from .base_runner import BaseRunner


class OneMinuteCallsRunner(BaseRunner):
    """Runner producing approximated 1-minute calls."""

    RUNNER_NAME = "Approximated 1-Minute Calls Runner"

    def __init__(self, uenb: str = '6', reserve_type: str = 'SRL',
                 resolution: Optional[float] = None,
                 client: Optional[ReserveDataClient] = None, **kwargs):
        super().__init__(**kwargs)
        self.uenb = validate_uenb(uenb)
        self.reserve_type = validate_call_reserve_type(reserve_type)
        self.resolution = resolution
        self.client = client

    def _get_client(self) -> ReserveDataClient:
        if self.client is None:
            self.logger.info("Initializing portal client...")
            self.client = ReserveDataClient()
        return self.client

    def compute(self):
        """Fetch needs and calls and approximate the 1-minute calls."""
        client = self._get_client()

        self.logger.info("Fetching operating reserve needs...")
        needs = get_reserve_needs(self.start_date, self.end_date, client=client, logger=self.logger)

        self.logger.info("")
        self.logger.info(f"Fetching {self.reserve_type} calls (uenb {self.uenb})...")
        calls = get_reserve_calls(self.start_date, self.end_date, self.uenb, self.reserve_type,
                                  client=client, logger=self.logger)

        self.logger.info("")
        self.logger.info("Approximating 1-minute calls...")
        return needs, calls, get_one_minute_calls(needs, calls, resolution=self.resolution, logger=self.logger)

    def process(self) -> None:
        _, _, approx = self.compute()
        self.save_table(approx, f"approx_1min_calls_{self.reserve_type}_{self.uenb}_{self.period_label()}.csv")

    @classmethod
    def create_argument_parser(cls):
        parser = super().create_argument_parser()
        parser.add_argument('--uenb', default='6',
                            help='50Hertz (4), TenneT (2), Amprion (3), TransnetBW (1), '
                                 'Netzregelverbund (6), IGCC (11)')
        parser.add_argument('--reserve-type', default='SRL',
                            help='SRL, MRL, RZ_SALDO, REBAP, ZUSATZMASSNAHMEN, NOTHILFE')
        parser.add_argument('--resolution', type=float, default=None,
                            help='Round minute values to this step in MW (e.g. 0.001)')
        return parser

    @classmethod
    def runner_kwargs(cls, args) -> dict:
        kwargs = super().runner_kwargs(args)
        kwargs.update(uenb=args.uenb, reserve_type=args.reserve_type, resolution=args.resolution)
        return kwargs


def main():
    OneMinuteCallsRunner.main()


if __name__ == '__main__':
    main()
