#!/usr/bin/env python3
"""
KUBEACTIONS CLI
---------------
Command-line front end for the Resource Action Engine:

    kubeactions discover <manifest>
    kubeactions run <manifest> <action> [-p name=value ...]
    kubeactions verify [root ...] [--diff]

Nothing here talks to a cluster: `run` prints what an action would apply.

Author: KubeActions Team
Date: 2026-10-17
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from rich.logging import RichHandler
from rich.panel import Panel

from kubeactions.cli.formatter import ActionFormatter, console
from kubeactions.catalog.loader import resolve_customization_paths
from kubeactions.core.engine import ResourceActionEngine
from kubeactions.core.errors import ActionEngineError
from kubeactions.sandbox.context import TrustLevel
from kubeactions.verify.fixtures import load_manifest
from kubeactions.verify.harness import FixtureVerifier

VERSION = "1.0.0"


def parse_param(raw: str) -> tuple:
    """argparse type for -p name=value."""
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"parameter must look like name=value, got {raw!r}")
    return name, value


class KubeActionsCLI:
    """
    CLI wrapper that translates user commands into engine calls.
    """

    def __init__(self):
        """Initializes the CLI and sets up the argument parser."""
        self.parser = argparse.ArgumentParser(
            prog="kubeactions",
            description="KubeActions - sandboxed custom actions for Kubernetes resources",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = ActionFormatter()
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-v", "--version", action="version", version=f"kubeactions v{VERSION}")

        common = argparse.ArgumentParser(add_help=False)
        common.add_argument("--customizations", action="append", metavar="PATH",
                            help="Customization root (repeatable; default: $KUBEACTIONS_CUSTOMIZATIONS "
                                 "or ./resource_customizations)")
        common.add_argument("--document", action="append", default=[], metavar="FILE",
                            help="YAML customization document (repeatable)")
        common.add_argument("--trust", choices=[t.value for t in TrustLevel], default=TrustLevel.RESTRICTED.value,
                            help="Sandbox trust tier; 'full' is for local debugging only")
        common.add_argument("--verbose", action="store_true", help="Enable debug logging")

        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        discover_parser = subparsers.add_parser("discover", parents=[common],
                                                help="🔍 List the actions a resource offers")
        discover_parser.add_argument("manifest", help="Path to a resource manifest (YAML/JSON)")

        run_parser = subparsers.add_parser("run", parents=[common],
                                           help="⚙️  Compute the impacted resources of an action")
        run_parser.add_argument("manifest", help="Path to a resource manifest (YAML/JSON)")
        run_parser.add_argument("action", help="Action name")
        run_parser.add_argument("-p", "--param", action="append", default=[], type=parse_param,
                                metavar="NAME=VALUE", help="Action parameter (repeatable)")

        verify_parser = subparsers.add_parser("verify", parents=[common],
                                              help="✅ Run action_test.yaml fixtures")
        verify_parser.add_argument("roots", nargs="*", help="Roots to scan (default: the customization roots)")
        verify_parser.add_argument("--diff", action="store_true", help="Show diffs of mismatching resources")

    def _configure_logging(self, verbose: bool):
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    def _build_engine(self, args: argparse.Namespace) -> ResourceActionEngine:
        roots = resolve_customization_paths(args.customizations)
        if not args.customizations and args.document:
            # Documents alone are a complete source; skip the default root
            roots = [r for r in roots if r.is_dir()]
        return ResourceActionEngine.from_paths(roots, args.document, trust=TrustLevel(args.trust))

    def _cmd_discover(self, args: argparse.Namespace) -> int:
        engine = self._build_engine(args)
        resource = load_manifest(args.manifest)
        self.formatter.show_actions(resource, engine.discover(resource))
        return 0

    def _cmd_run(self, args: argparse.Namespace) -> int:
        engine = self._build_engine(args)
        resource = load_manifest(args.manifest)
        params: Dict[str, str] = dict(args.param)
        impacted = engine.run_action(resource, args.action, params)
        self.formatter.show_impacted(args.action, impacted)
        return 0

    def _cmd_verify(self, args: argparse.Namespace) -> int:
        engine = self._build_engine(args)
        roots = args.roots or [str(p) for p in resolve_customization_paths(args.customizations)]
        verifier = FixtureVerifier(engine)

        reports = []
        for root in roots:
            reports.extend(verifier.verify_root(root))

        if not reports:
            console.print("\n[bold yellow]⚠️  No action_test.yaml fixtures found.[/bold yellow]")
            return 0

        if args.diff:
            for report in reports:
                for label, expected, actual in report.diffs:
                    self.formatter.display_diff(f"{report.name} ({label})", expected, actual)

        summary = verifier.generate_summary(reports)
        self.formatter.print_final_table(reports, summary)
        return 0 if summary["failed"] == 0 else 1

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point."""
        args = self.parser.parse_args(argv)
        if not args.command:
            console.print(Panel.fit(f"[bold cyan]KubeActions v{VERSION}[/bold cyan]", border_style="cyan"))
            self.parser.print_help()
            return 0

        self._configure_logging(args.verbose)
        handlers = {
            "discover": self._cmd_discover,
            "run": self._cmd_run,
            "verify": self._cmd_verify,
        }
        try:
            return handlers[args.command](args)
        except ActionEngineError as e:
            self.formatter.show_error(e)
            return 1


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubeActionsCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
