# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.graph_client import GraphClient
from processors.ad_enricher import ADEnricherProcessor
from processors.ad_enricher_normalized import NormalizingADEnricherProcessor
from processors.mfa_collector import MFACollector
from utils.config import Config


AD_PROCESSORS = {
    'ad_enrich': ADEnricherProcessor,
    'ad_enrich_normalized': NormalizingADEnricherProcessor,
}


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"mfa_report_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always gets DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # msal and urllib3 are noisy at DEBUG
    for noisy in ('msal', 'urllib3'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def handle_mfa_collector(args, config):
    """Collect MFA registrations for every Graph user"""
    logger = logging.getLogger(__name__)
    output_csv = args.output or config.mfa_report_path

    with GraphClient(config.tenant_id, config.client_id, config.client_secret) as graph_client:
        collector = MFACollector(graph_client, strict=args.strict)
        stats = collector.run(output_csv)

    logger.info("MFA collection completed successfully!")
    logger.info(f"Reported {stats.mfa_enabled + stats.mfa_disabled} of {stats.total_users} users to {output_csv}")


def handle_ad_processors(args, config):
    """Enrich the MFA report from Active Directory"""
    logger = logging.getLogger(__name__)
    input_csv = args.input or config.mfa_report_path
    if args.processor == 'ad_enrich_normalized':
        output_csv = args.output or config.ad_normalized_report_path
    else:
        output_csv = args.output or config.ad_report_path

    with ActiveDirectoryClient(
            config.ad_server, config.ad_username,
            config.ad_password, config.base_dn
    ) as ad_client:
        processor = AD_PROCESSORS[args.processor](ad_client)
        stats = processor.process_users(input_csv, output_csv)

    logger.info("Processing completed successfully!")
    logger.info(f"Final success rate: {stats.success_rate:.1f}%")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MFA registration and AD enrichment reports")
    subparsers = parser.add_subparsers(dest='processor', help='Report to produce')

    mfa_parser = subparsers.add_parser('mfa', help='Collect MFA methods for every Graph user')
    mfa_parser.add_argument('--output', help='Output CSV path (default: MFA_REPORT_PATH)')
    mfa_parser.add_argument('--strict', action='store_true',
                            help='Abort when a user\'s methods cannot be read instead of skipping the user')

    for proc_name, help_text in (
            ('ad_enrich', 'Add AD account attributes to the MFA report'),
            ('ad_enrich_normalized', 'Add AD account attributes and normalized mobile numbers')):
        proc_parser = subparsers.add_parser(proc_name, help=help_text)
        proc_parser.add_argument('--input', help='MFA report CSV (default: MFA_REPORT_PATH)')
        proc_parser.add_argument('--output', help='Output CSV path')

    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.processor:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = Config()
    if args.processor == 'mfa':
        config_valid = config.validate_graph_config()
        missing_vars = config.get_missing_graph_vars()
    else:
        config_valid = config.validate_ad_config()
        missing_vars = config.get_missing_ad_vars()
        input_file = args.input or config.mfa_report_path
        if not Path(input_file).exists():
            logger.error(f"Input file not found: {input_file}")
            sys.exit(1)

    if not config_valid:
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    try:
        if args.processor == 'mfa':
            handle_mfa_collector(args, config)
        else:
            handle_ad_processors(args, config)

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
