#!/usr/bin/env python3
"""
Invoice Computation Engine - Main Entry Point.

Reads stored invoices from a JSON file, reconciles each one into a
consistent view (line amounts, totals, document kind, GST split) and
writes CSV and/or XLSX exports.

Usage:
    Command Line:
        python main.py --input invoices.json
        python main.py --input invoices.json --format xlsx --output ./exports/
        python main.py --input invoices.json --no-items --config custom.yaml

    Python:
        from main import run_export
        info = run_export("invoices.json", formats=["csv"])
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import ConfigurationManager
from invoice_engine.utils.exceptions import InvoiceEngineError, InvoiceFileError
from invoice_engine.utils.helpers import get_file_extension
from invoice_engine.utils.logger import APP_LOGGER, get_logger, setup_logger_from_config

FORMAT_CHOICES = {
    'csv': ['csv'],
    'xlsx': ['xlsx'],
    'both': ['csv', 'xlsx'],
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Travel-agency invoice computation and export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Export all formats to the configured output directory:
        python main.py --input invoices.json

    Excel only, into a specific directory:
        python main.py --input invoices.json --format xlsx --output ./exports/

    One summary row per invoice:
        python main.py --input invoices.json --no-items
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="JSON file with stored invoices (a list, or {\"invoices\": [...]})"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory (default: paths.output_dir from config)"
    )

    parser.add_argument(
        "--format", "-f",
        choices=sorted(FORMAT_CHOICES),
        default="both",
        help="Export format (default: both)"
    )

    parser.add_argument(
        "--name", "-n",
        type=str,
        default=None,
        help="Output filename stem (default: timestamped names)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--no-items",
        action="store_true",
        help="Export one summary row per invoice instead of one row per line item"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG)
        for handler in logging.getLogger(APP_LOGGER).handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("INVOICE COMPUTATION ENGINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


def load_invoices(input_path: str) -> List[Dict[str, Any]]:
    """
    Load stored invoices from a JSON file.

    Args:
        input_path: Path to the JSON file.

    Returns:
        List of invoice records.

    Raises:
        InvoiceFileError: If the file is missing, not JSON, or holds no
            invoice list.
    """
    path = Path(input_path)
    if not path.is_file():
        raise InvoiceFileError(str(path), "File not found")

    if get_file_extension(path) != '.json':
        get_logger(__name__).warning(f"Input does not have a .json extension: {path.name}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise InvoiceFileError(str(path), f"Invalid JSON: {e}")

    if isinstance(payload, dict):
        payload = payload.get('invoices')

    if not isinstance(payload, list):
        raise InvoiceFileError(str(path), "Expected a list of invoices or an object with an 'invoices' list")

    invoices = [inv for inv in payload if isinstance(inv, dict)]
    skipped = len(payload) - len(invoices)
    if skipped:
        get_logger(__name__).warning(f"Skipped {skipped} non-object entries in {path.name}")

    return invoices


def run_export(
    input_path: str,
    output_dir: Optional[str] = None,
    formats: Optional[List[str]] = None,
    include_items: Optional[bool] = None,
    basename: Optional[str] = None
) -> Dict[str, Any]:
    """
    Reconcile stored invoices and export them.

    Args:
        input_path: JSON file of stored invoices.
        output_dir: Output directory (configured dir if None).
        formats: Export formats; both CSV and XLSX if None.
        include_items: One row per line item (config default if None).
        basename: Filename stem for the exports.

    Returns:
        Output details from ExportHandler.save_views, plus the reconciled
        views under 'views' and their flat summaries under 'summaries'.

    Example:
        >>> info = run_export("invoices.json", formats=["csv"])
        >>> print(info['csv_path'])
    """
    from invoice_engine.export import ExportHandler

    logger = get_logger(__name__)

    invoices = load_invoices(input_path)
    logger.info(f"Loaded {len(invoices)} invoices")

    handler = ExportHandler(include_items=include_items)
    views = handler.views(invoices)

    if views:
        output_info = handler.save_views(
            views,
            formats=formats or ['csv', 'xlsx'],
            output_dir=output_dir,
            basename=basename
        )
    else:
        logger.warning("No invoices to export")
        output_info = {'csv_path': None, 'excel_path': None, 'errors': []}

    output_info['views'] = views
    output_info['summaries'] = [handler.builder.summary(view) for view in views]
    return output_info


def print_summaries(views: List[Any], summaries: List[Dict[str, Any]]) -> None:
    """Print one line per reconciled invoice."""
    for view, summary in zip(views, summaries):
        flag = "" if view.totals.consistent else "  (header overridden)"
        print(
            f"{summary.get('invoiceNo') or summary.get('invoiceId') or '-':<16} "
            f"{summary.get('documentKind', ''):<17} "
            f"{summary.get('currency', ''):<4} "
            f"subtotal={summary.get('subtotal')} "
            f"tax={summary.get('taxAmt')} "
            f"svc={summary.get('svcAmt')} "
            f"total={summary.get('total')}{flag}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = None
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        logger = get_logger(__name__)

        output_info = run_export(
            input_path=args.input,
            output_dir=args.output,
            formats=FORMAT_CHOICES[args.format],
            include_items=False if args.no_items else None,
            basename=args.name
        )

        print_summaries(output_info['views'], output_info['summaries'])

        for key in ('csv_path', 'excel_path'):
            if output_info.get(key):
                logger.info(f"Wrote: {output_info[key]}")

        if output_info['errors']:
            for error in output_info['errors']:
                print(f"Error: {error}", file=sys.stderr)
            return 1

        logger.info("=" * 60)
        logger.info(f"Export complete. Processed {len(output_info['summaries'])} invoices.")
        logger.info("=" * 60)
        return 0

    except (InvoiceEngineError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args is not None and args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
