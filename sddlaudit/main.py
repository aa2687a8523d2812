#!/usr/bin/env python3
"""
sddlAudit - Active Directory Security Descriptor Audit
======================================================

Command-line interface for auditing exported security descriptors.

Usage:
    # Audit a folder of <domain>.json exports
    sddlaudit -i ./exports

    # With DN exclusions and CSV output
    sddlaudit -i ./exports -e exclude.txt --csv

    # Rebuild GUID catalogs from the domain controllers
    sddlaudit -i ./exports -u --username auditor --password Passw0rd

Options:
    --input, -i         Folder with <domain>.json exports (required)
    --exclude-file, -e  DN substrings to skip, one per line
    --csv               Write the flat CSV report
    --update-cache, -u  Rebuild the rights/attributes cache
    --offline           Never contact a domain controller
    --output, -o        Output directory (default: ./output)
    --verbose, -v       Verbose output

Environment Variables:
    SDDLAUDIT_USERNAME  Directory username for schema queries
    SDDLAUDIT_PASSWORD  Directory password for schema queries
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .pipeline.runner import run_audit
from .reporting.report_builder import generate_text_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sddlaudit",
        description="sddlAudit - find dangerous ACEs granted to broad principals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -i ./exports
  %(prog)s -i ./exports -e exclude.txt --csv
  %(prog)s -i ./exports -u --username auditor --password Passw0rd
        """
    )

    input_group = parser.add_argument_group("Input")
    input_group.add_argument(
        "-i", "--input",
        required=True,
        help="Folder with <domain>.json exports of AD objects"
    )
    input_group.add_argument(
        "-e", "--exclude-file",
        dest="exclude_file",
        help="File with DN exclusions (substrings, one per line)"
    )

    catalog_group = parser.add_argument_group("GUID Catalog")
    catalog_group.add_argument(
        "-u", "--update-cache",
        dest="update_cache",
        action="store_true",
        help="Rebuild the rights/GUID cache from the domain controllers"
    )
    catalog_group.add_argument(
        "--cache-dir",
        default="cache",
        help="Folder for <domain>_rights.json / <domain>_attributes.json (default: ./cache)"
    )
    catalog_group.add_argument(
        "--offline",
        action="store_true",
        help="Never contact a domain controller; use cached catalogs only"
    )

    ldap_group = parser.add_argument_group("LDAP")
    ldap_group.add_argument("--server", help="Domain controller to query instead of the domain name")
    ldap_group.add_argument("--username", help="Domain username for schema queries")
    ldap_group.add_argument("--password", help="Domain password for schema queries")
    ldap_group.add_argument(
        "--ntlm-hash",
        dest="ntlm_hash",
        help="NTLM hash for Pass-the-Hash authentication (instead of password)"
    )
    ldap_group.add_argument("--ssl", action="store_true", help="Use LDAPS (port 636)")

    output_group = parser.add_argument_group("Output")
    output_group.add_argument(
        "-o", "--output",
        default="output",
        help="Output directory for results (default: ./output)"
    )
    output_group.add_argument("--csv", action="store_true", help="Generate CSV output")
    output_group.add_argument("--no-html", dest="html", action="store_false",
                              help="Do not write the HTML report")
    output_group.add_argument("--no-json", dest="json", action="store_false",
                              help="Do not write the JSON report")

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Domain files processed in parallel (default: 1)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sddlAudit {__version__}"
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not Path(args.input).is_dir():
        parser.error(f"Input folder not found: {args.input}")
    if args.exclude_file and not Path(args.exclude_file).is_file():
        parser.error(f"Exclude file not found: {args.exclude_file}")

    config = {
        "input": {
            "input_dir": args.input,
            "exclude_file": args.exclude_file,
        },
        "catalog": {
            "cache_dir": args.cache_dir,
            "rebuild": args.update_cache,
        },
        "ldap": {
            "server": args.server,
            "username": args.username,
            "password": args.password,
            "ntlm_hash": args.ntlm_hash,
            "use_ssl": args.ssl,
        },
        "output": {
            "output_dir": args.output,
            "generate_csv": args.csv,
            "generate_html": args.html,
            "generate_json": args.json,
        },
        "offline": args.offline,
        "workers": args.workers,
        "verbose": args.verbose,
    }

    try:
        result = run_audit(config)

        print(generate_text_report(result))

        print(f"\nResults saved to:")
        if result.report_path:
            print(f"  - JSON: {result.report_path}")
        if result.html_report_path:
            print(f"  - HTML: {result.html_report_path}")
        if result.csv_report_path:
            print(f"  - CSV: {result.csv_report_path}")

        return 0

    except Exception as e:
        print(f"\n[!] Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
