"""
Marginal Work Price Runner.

Approximates the 1-minute calls and prices every minute with the marginal
work price of the weekly auction results.

Usage:
    reservecrawler-marginal-prices --start-date 2017-03-07 --end-date 2017-03-14 --uenb 6 --product 2
"""

from ..constants import validate_auction_product
from ..marginal import calc_marginal_work_prices
from ..pipeline import get_reserve_auctions
from .one_minute_calls_runner import OneMinuteCallsRunner


class MarginalPriceRunner(OneMinuteCallsRunner):
    """Runner producing marginal work prices per minute."""

    RUNNER_NAME = "Marginal Work Price Runner"

    def __init__(self, product: str = '2', **kwargs):
        super().__init__(**kwargs)
        self.product = validate_auction_product(product)

    def process(self) -> None:
        _, _, approx = self.compute()

        self.logger.info("")
        self.logger.info(f"Fetching auction results (product {self.product})...")
        auctions = get_reserve_auctions(self.start_date, self.end_date, self.product,
                                        client=self.client, logger=self.logger)

        self.logger.info("")
        self.logger.info("Calculating marginal work prices...")
        prices = calc_marginal_work_prices(approx, auctions, logger=self.logger)

        priced = prices['marginal_work_price'].notna()
        if priced.any():
            self.logger.info(
                f"  Marginal work price range: {prices.loc[priced, 'marginal_work_price'].min():.2f} "
                f"to {prices.loc[priced, 'marginal_work_price'].max():.2f} EUR/MWh"
            )

        self.save_table(prices, f"marginal_work_prices_{self.reserve_type}_{self.uenb}_{self.period_label()}.csv")

    @classmethod
    def create_argument_parser(cls):
        parser = super().create_argument_parser()
        parser.add_argument('--product', default='2',
                            help='Auction product: PRL (1), SRL (2), MRL (3), ...')
        return parser

    @classmethod
    def runner_kwargs(cls, args) -> dict:
        kwargs = super().runner_kwargs(args)
        kwargs['product'] = args.product
        return kwargs


def main():
    MarginalPriceRunner.main()


if __name__ == '__main__':
    main()
