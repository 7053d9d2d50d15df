#!/usr/bin/env python3
"""
UI Bug Scanner - CLI Entry Point

Renders pages in a headless browser at several viewport sizes and reports
layout, interaction, accessibility, visual, typo, navigation and form defects
with a 0-100 quality score per page.

Exit codes follow CI conventions: 0 pass, 1 major issues (or error),
2 critical issues.

Usage:
    uibugscan scan https://example.com
    uibugscan crawl https://example.com --depth 2 --pages 30 --format markdown
    python -m uibugscan crawl https://example.com --no-sitemap -v
"""

import argparse
import sys
from typing import List, Optional

from uibugscan import __version__, config
from uibugscan.crawler.frontier import CrawlProgress, SiteCrawler
from uibugscan.crawler.urls import normalize_url
from uibugscan.engine.orchestrator import PageScanner
from uibugscan.exceptions import ScannerError
from uibugscan.models.finding import CrawlOptions, DetectorConfig, default_viewports
from uibugscan.reporter.report import ReportGenerator, exit_code_for
from uibugscan.utils.http import HTTPClient
from uibugscan.utils.logger import setup_logger

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


# ──────────────────────────────────────────────────────────────────────
# Argument parsing
# ──────────────────────────────────────────────────────────────────────
def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('url', help='Target URL (http:// or https://)')
    common.add_argument(
        '--no-mobile', action='store_true',
        help='Skip mobile viewport emulation'
    )
    common.add_argument(
        '--output', '-o', type=str,
        help='Base name for report files (default: reports/bug_report_<timestamp>)'
    )
    common.add_argument(
        '--format', dest='report_format',
        choices=config.REPORT_FORMATS, default='both',
        help='Report file format (default: both)'
    )
    common.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable verbose/debug logging'
    )

    parser = argparse.ArgumentParser(
        prog='uibugscan',
        description=f'UI Bug Scanner v{__version__}',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a single page at desktop, tablet and mobile sizes
  uibugscan scan https://example.com

  # Crawl up to 30 pages, three links deep, Markdown report only
  uibugscan crawl https://example.com --depth 3 --pages 30 --format markdown

  # Gentle crawl without sitemap discovery
  uibugscan crawl https://example.com --concurrency 1 --delay 2 --no-sitemap
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('scan', parents=[common], help='Scan a single page')

    crawl = commands.add_parser('crawl', parents=[common], help='Crawl and scan a whole site')
    crawl_group = crawl.add_argument_group('Crawler Options')
    crawl_group.add_argument(
        '--depth', type=int, default=config.DEFAULT_CRAWL_DEPTH,
        help=f'Maximum link depth (default: {config.DEFAULT_CRAWL_DEPTH})'
    )
    crawl_group.add_argument(
        '--pages', type=int, default=config.DEFAULT_MAX_PAGES,
        help=f'Maximum pages to scan (default: {config.DEFAULT_MAX_PAGES})'
    )
    crawl_group.add_argument(
        '--concurrency', type=int, default=config.DEFAULT_CONCURRENCY,
        help=f'Pages scanned in parallel (default: {config.DEFAULT_CONCURRENCY})'
    )
    crawl_group.add_argument(
        '--delay', type=float, default=config.DEFAULT_REQUEST_DELAY,
        help=f'Seconds to wait between batches (default: {config.DEFAULT_REQUEST_DELAY})'
    )
    crawl_group.add_argument(
        '--no-sitemap', action='store_true',
        help='Do not seed the crawl from /sitemap.xml'
    )

    return parser.parse_args(argv)


def validate_arguments(args) -> bool:
    """Validate parsed arguments. Returns True if valid."""
    if normalize_url(args.url) is None:
        print("ERROR: URL must be an absolute http:// or https:// URL")
        return False

    if args.command == 'crawl':
        if args.depth < 0 or args.depth > 10:
            print("ERROR: Crawl depth must be between 0 and 10")
            return False
        if args.pages < 1:
            print("ERROR: Page budget must be at least 1")
            return False
        if args.concurrency < 1 or args.concurrency > config.MAX_CONCURRENCY:
            print(f"ERROR: Concurrency must be between 1 and {config.MAX_CONCURRENCY}")
            return False
        if args.delay < 0:
            print("ERROR: Delay cannot be negative")
            return False

    return True


def build_detector_config(args) -> DetectorConfig:
    viewports = default_viewports()
    if args.no_mobile:
        viewports = [vp for vp in viewports if not vp.is_mobile]
    return DetectorConfig(viewports=viewports)


def print_banner():
    """Print ASCII art banner."""
    banner = r"""
╔═══════════════════════════════════════════════════════════════════════╗
║                                                                       ║
║   UI Bug Scanner                                                      ║
║                                                                       ║
║   Layout | Interaction | Accessibility | Visual | Typo | Navigation   ║
║   Multi-viewport rendering • Scored & prioritized findings            ║
║                                                                       ║
╚═══════════════════════════════════════════════════════════════════════╝
    """
    print(banner)


def _print_progress(progress: CrawlProgress):
    print(
        f"[*] [{progress.status}] {progress.pages_scanned}/{progress.total_pages_queued}"
        f"  depth {progress.current_depth}  {progress.current_page}"
    )


# ──────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────
def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the UI bug scanner."""
    args = parse_arguments(argv)

    if not validate_arguments(args):
        return EXIT_ERROR

    logger = setup_logger('uibugscan', verbose=args.verbose)
    print_banner()

    detector_config = build_detector_config(args)
    labels = ', '.join(vp.label for vp in detector_config.viewports)

    print("\n[*] Scan Configuration:")
    print(f"    Target URL : {args.url}")
    print(f"    Mode       : {args.command}")
    print(f"    Viewports  : {labels}")
    if args.command == 'crawl':
        print(f"    Max Depth  : {args.depth}")
        print(f"    Max Pages  : {args.pages}")
        print(f"    Concurrency: {args.concurrency}")
    print(f"    Report     : {args.report_format}")
    print()

    http_client = HTTPClient()
    try:
        scanner = PageScanner(http_client=http_client)

        if args.command == 'scan':
            print(f"[*] Scanning {args.url} ...")
            result = scanner.scan(args.url, detector_config)
            findings = result.findings
        else:
            print(f"[*] Crawling {args.url} ...")
            crawler = SiteCrawler(scanner=scanner, on_progress=_print_progress, http_client=http_client)
            options = CrawlOptions(
                max_depth=args.depth,
                max_pages=args.pages,
                include_sitemap=not args.no_sitemap,
                request_delay=args.delay,
                concurrency=args.concurrency,
            )
            result = crawler.crawl(args.url, detector_config, options=options)
            findings = result.all_findings

        print(f"[+] Scan complete: {len(findings)} finding(s)")

        reporter = ReportGenerator()
        output_files = reporter.generate_reports(result, args.report_format, args.output)

        if output_files:
            print("\n[+] Report files generated:")
            for fmt, fpath in output_files.items():
                print(f"    {fmt.upper()}: {fpath}")

        return exit_code_for(findings)

    except KeyboardInterrupt:
        print("\n\n[!] Scan interrupted by user.")
        logger.info("Scan interrupted by user (Ctrl+C)")
        return EXIT_INTERRUPTED

    except ScannerError as e:
        print(f"\n[!] Error: {e}")
        logger.error(f"Scan failed: {e}")
        return EXIT_ERROR

    except Exception as e:
        print(f"\n[!] Error: {e}")
        logger.exception("Unhandled exception in main")
        return EXIT_ERROR

    finally:
        http_client.close()


if __name__ == '__main__':
    sys.exit(main())
