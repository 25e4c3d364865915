"""
Base runner module providing shared functionality for the command-line runners.

Features:
- Logging setup
- Dry-run support
- Date range arguments
- CSV output under OUTPUT_DIR/YYYY/MM/
"""

import sys
import argparse
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd
import requests

from ..common import parse_date, setup_logging
from ..config import OUTPUT_DIR
from ..exceptions import ReserveDataError


class BaseRunner(ABC):
    """Base class for all reserve data runners.

    Provides common functionality for:
    - Logging
    - Output file management
    - Header/footer banners
    - Error handling around run()
    """

    # Override in subclasses
    RUNNER_NAME = "BaseRunner"

    def __init__(self, start_date, end_date, debug: bool = False, dry_run: bool = False,
                 output_dir: Optional[Path] = None):
        """
        Initialize runner.

        Args:
            start_date: First day to process
            end_date: Last day to process
            debug: Enable debug logging
            dry_run: Fetch and compute but don't write output files
            output_dir: Output directory (defaults to OUTPUT_DIR)
        """
        self.start_date = parse_date(start_date)
        self.end_date = parse_date(end_date)
        self.debug = debug
        self.dry_run = dry_run
        self.output_dir = Path(output_dir) if output_dir else OUTPUT_DIR
        self.logger = setup_logging(debug=debug)

    def get_output_path(self, filename: str, period_start: date) -> Path:
        """
        Get output path for a result file.

        Creates directory structure: OUTPUT_DIR/YYYY/MM/

        Args:
            filename: Base filename
            period_start: Period start for directory structure

        Returns:
            Full path to output file
        """
        output_dir = self.output_dir / str(period_start.year) / f"{period_start.month:02d}"
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir / filename

    def save_table(self, df: pd.DataFrame, filename: str) -> Optional[Path]:
        """
        Save a result table as CSV.

        Args:
            df: Table to save
            filename: Base filename

        Returns:
            Path of the written file, None in dry-run mode
        """
        if self.dry_run:
            self.logger.info(f"DRY RUN - Would save {len(df)} rows to {filename}")
            return None

        filepath = self.get_output_path(filename, self.start_date)
        df.to_csv(filepath, index=False)
        self.logger.info(f"✓ Saved {len(df)} rows to: {filepath}")
        return filepath

    def period_label(self) -> str:
        return f"{self.start_date.strftime('%Y%m%d')}_{self.end_date.strftime('%Y%m%d')}"

    def print_header(self) -> None:
        """Print runner header."""
        self.logger.info("")
        self.logger.info("╔══════════════════════════════════════════════════════════╗")
        self.logger.info(f"║  {self.RUNNER_NAME:<56}║")
        self.logger.info("╚══════════════════════════════════════════════════════════╝")
        self.logger.info(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        self.logger.info(f"Period: {self.start_date} to {self.end_date}")
        if self.dry_run:
            self.logger.info("DRY RUN MODE - No files will be written")
        self.logger.info("")

    def print_footer(self, success: bool = True) -> None:
        """Print runner footer."""
        status = "Completed Successfully" if success else "Completed with Errors"
        self.logger.info("")
        self.logger.info("╔══════════════════════════════════════════════════════════╗")
        self.logger.info(f"║  {status:<56}║")
        self.logger.info("╚══════════════════════════════════════════════════════════╝")
        self.logger.info(f"Finished at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        self.logger.info("")

    @abstractmethod
    def process(self) -> None:
        """Fetch, compute and save. Raise on failure."""

    def run(self) -> bool:
        """
        Execute the runner.

        Returns:
            True if successful, False otherwise
        """
        self.print_header()
        try:
            self.process()
        except (ReserveDataError, ValueError, requests.RequestException) as e:
            self.logger.error(f"✗ Pipeline failed: {e}")
            if self.debug:
                self.logger.exception("Traceback:")
            self.print_footer(success=False)
            return False

        self.print_footer(success=True)
        return True

    @classmethod
    def create_argument_parser(cls) -> argparse.ArgumentParser:
        """Create argument parser for the runner."""
        parser = argparse.ArgumentParser(
            description=f"{cls.RUNNER_NAME} - Operating Reserve Data Pipeline"
        )
        parser.add_argument('--start-date', required=True,
                            help='Start date in YYYY-MM-DD or DD.MM.YYYY format')
        parser.add_argument('--end-date', default=None,
                            help='End date (default: same as start-date)')
        parser.add_argument('--output-dir', type=Path, default=None,
                            help='Output directory (default: RESERVE_OUTPUT_DIR)')
        parser.add_argument('--debug', action='store_true',
                            help='Enable debug logging')
        parser.add_argument('--dry-run', action='store_true',
                            help='Fetch and compute but don\'t write output files')
        return parser

    @classmethod
    def runner_kwargs(cls, args: argparse.Namespace) -> dict:
        """Map parsed arguments to constructor keyword arguments."""
        return {
            'start_date': args.start_date,
            'end_date': args.end_date or args.start_date,
            'debug': args.debug,
            'dry_run': args.dry_run,
            'output_dir': args.output_dir,
        }

    @classmethod
    def main(cls, argv=None) -> None:
        """Main entry point for the runner."""
        parser = cls.create_argument_parser()
        args = parser.parse_args(argv)

        try:
            runner = cls(**cls.runner_kwargs(args))
        except ValueError as e:
            parser.error(str(e))

        success = runner.run()
        sys.exit(0 if success else 1)
