# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.exceptions import ColumnMappingError
from processors.job_change import JobChangeProcessor
from processors.leave_audit import LeaveAuditProcessor
from processors.manager_sync import ManagerSyncProcessor
from processors.termination import TerminationProcessor
from processors.training import TrainingComplianceProcessor
from utils.config import Config


PROCESSOR_MAP = {
    'manager_sync': ManagerSyncProcessor,
    'job_change': JobChangeProcessor,
    'leave_audit': LeaveAuditProcessor,
    'termination': TerminationProcessor,
    'training': TrainingComplianceProcessor,
}

PROCESSOR_HELP = {
    'manager_sync': 'Compare HR manager changes against AD',
    'job_change': 'Compare HR job changes (manager and title) against AD',
    'leave_audit': 'Audit employees on leave',
    'termination': 'Audit terminated employees and classify mailbox action',
    'training': 'Report employees with incomplete training',
}


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"ad_reconciliation_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def confirm_updates(count: int) -> bool:
    """Ask once before writing to the directory"""
    answer = input(f"Apply {count} pending update(s) to Active Directory? [y/N]: ")
    return answer.strip().lower() in ('y', 'yes')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AD Reconciliation Tool")
    subparsers = parser.add_subparsers(dest='processor', help='Workflow')

    for proc_name, processor_class in PROCESSOR_MAP.items():
        proc_parser = subparsers.add_parser(proc_name, help=PROCESSOR_HELP[proc_name])
        proc_parser.add_argument('input_csv', help='Input CSV file path')
        proc_parser.add_argument('output_csv', help='Output CSV file path')
        proc_parser.add_argument('--no-filters', action='store_true', help='Disable filtering')
        proc_parser.add_argument('--no-manager-cache', action='store_true',
                                 help='Look up each manager again for every employee')

        if processor_class.SUPPORTS_UPDATES:
            proc_parser.add_argument('--apply', action='store_true',
                                     help='Write corrections back to Active Directory')
            proc_parser.add_argument('--yes', action='store_true',
                                     help='Do not prompt before applying updates')

        if processor_class.USES_GROUPS:
            proc_parser.add_argument('--group', action='append', default=[],
                                     help='Group to report membership for (repeatable)')

    # Global arguments
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser


def run_processor(args, config: Config) -> int:
    """Load the export, then reconcile it against AD"""
    logger = logging.getLogger(__name__)
    processor_class = PROCESSOR_MAP[args.processor]

    # Column mapping problems stop the run before AD is touched
    try:
        records = processor_class.load_records(args.input_csv)
    except ColumnMappingError as e:
        logger.error(f"Input validation failed: {e}")
        return 1

    tracked_groups = config.tracked_groups + getattr(args, 'group', [])
    apply_updates = getattr(args, 'apply', False)
    confirm = None if getattr(args, 'yes', False) else confirm_updates

    with ActiveDirectoryClient(**config.ad_client_settings()) as ad_client:
        processor = processor_class(
            ad_client,
            tracked_groups=tracked_groups,
            cache_managers=not args.no_manager_cache
        )
        stats = processor.process_users(
            records,
            args.output_csv,
            apply_filters=not args.no_filters,
            apply_updates=apply_updates,
            confirm=confirm,
            show_table=True
        )

    logger.info("Processing completed successfully!")
    logger.info(f"Final success rate: {stats.success_rate:.1f}%")
    return 0


def main():
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args()

    if not args.processor:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Load configuration
    config = Config()
    if not config.validate_ad_config():
        missing_vars = config.get_missing_ad_vars()
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    if not Path(args.input_csv).exists():
        logger.error(f"Input file not found: {args.input_csv}")
        sys.exit(1)

    try:
        exit_code = run_processor(args, config)
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
