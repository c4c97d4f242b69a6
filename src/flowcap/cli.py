"""Command-line interface for flow capture."""

import asyncio
import json
import sys
from typing import List, Optional

from pydantic import ValidationError

from flowcap.browser_config import BrowserConfig
from flowcap.config import RunConfig, settings
from flowcap.exceptions import FlowCaptureError
from flowcap.logging_config import setup_logging
from flowcap.manifest import ManifestStore
from flowcap.models import Flow, count_flows, count_steps
from flowcap.runner import CaptureRun


def _split_patterns(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def _mode_from_args(args) -> str:
    if args.crawl:
        return "crawl"
    if args.auto:
        return "scripted"
    if args.interactive:
        return "interactive"
    return "single"


def print_progress(captured: int, max_pages: int, url: str) -> None:
    print(f"  ✓ [{captured}/{max_pages}] {url}")


def print_flow_tree(flows: List[Flow], indent: int = 0) -> None:
    """Print flows as an indented tree.

    Args:
        flows: Flows at one level
        indent: Current nesting level
    """
    pad = "  " * indent
    for flow in flows:
        print(f"{pad}• {flow.name} [{flow.id}] - {count_steps(flow)} step(s)")
        for step in flow.steps:
            print(f"{pad}    {step.order:>3}. {step.filename}  {step.url}")
        if flow.children:
            print_flow_tree(flow.children, indent + 1)


def capture_command(args):
    """Capture screenshots into a project's manifest."""
    try:
        steps = json.loads(args.steps) if args.steps else None
        config = RunConfig(
            project_name=args.name,
            flow_name=args.flow,
            parent_id=args.parent,
            seed_url=args.url,
            mode=_mode_from_args(args),
            steps=steps,
            max_depth=args.depth,
            max_pages=args.max_pages,
            exclude_patterns=_split_patterns(args.exclude),
            full_page=args.full_page,
        )
        browser_config = BrowserConfig.from_settings(
            headless=True if args.headless else None,
            connect_chrome=args.connect_chrome,
        )
    except json.JSONDecodeError as e:
        print(f"Error: --steps is not valid JSON: {e}")
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if config.mode == "crawl":
        print("\n--- Crawl Mode ---")
        print(f"Seed URL: {config.seed_url}")
        print(f"Max depth: {config.max_depth}")
        print(f"Max pages: {config.max_pages}")
        if config.exclude_patterns:
            print(f"Exclude patterns: {', '.join(config.exclude_patterns)}")
        print()

    run = CaptureRun(
        config,
        store=ManifestStore(args.captures_dir),
        browser_config=browser_config,
        on_progress=print_progress if config.mode == "crawl" else None,
    )

    try:
        result = asyncio.run(run.run())
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

    if config.mode == "crawl":
        print(f"\nCrawl complete: captured {result.captured_count} page(s)")

    if result.manifest_path:
        print(f"\nCaptured {result.captured_count} screenshot(s) to {result.project_dir}")
        print(f"Manifest saved to {result.manifest_path}")
    else:
        print("\nNothing captured; manifest unchanged.")


def projects_command(args):
    """List projects that have a manifest."""
    store = ManifestStore(args.captures_dir)
    projects = store.list_projects()

    if args.output == "json":
        print(json.dumps({name: m.to_dict() for name, m in projects.items()}, indent=2))
        return

    if not projects:
        print(f"No projects found in {store.captures_dir}")
        return

    for name, manifest in projects.items():
        total_steps = sum(count_steps(flow) for flow in manifest.flows)
        print(f"{name}: {count_flows(manifest.flows)} flow(s), {total_steps} screenshot(s)")


def show_command(args):
    """Show a project's flow tree."""
    store = ManifestStore(args.captures_dir)
    try:
        manifest = store.get_project(args.project)
    except (FlowCaptureError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.output == "json":
        print(json.dumps(manifest.to_dict(), indent=2))
        return

    print(f"\n{'=' * 60}")
    print(f"Project: {manifest.project_name}")
    print(f"{'=' * 60}\n")
    print_flow_tree(manifest.flows)


def delete_command(args):
    """Delete a project and its screenshots."""
    store = ManifestStore(args.captures_dir)
    try:
        path = store.delete_project(args.project)
    except (FlowCaptureError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Deleted {path}")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Flow Capture - Record website flows as hierarchical screenshot manifests"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--captures-dir",
        default=settings.CAPTURES_DIR,
        help="Root directory of all projects (default: ./captures)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Capture command parser
    capture_parser = subparsers.add_parser(
        "capture", help="Capture screenshots of a website flow."
    )
    capture_parser.add_argument("-n", "--name", default="default", help="Project name (default: default)")
    capture_parser.add_argument("-f", "--flow", help="Flow name")
    capture_parser.add_argument("-p", "--parent", help="Parent flow ID for nesting")
    capture_parser.add_argument("-u", "--url", help="URL to capture")
    capture_parser.add_argument("-i", "--interactive", action="store_true", help="Interactive mode")
    capture_parser.add_argument(
        "-a", "--auto", action="store_true",
        help="Automated mode (no interactive prompts)",
    )
    capture_parser.add_argument("--steps", help="JSON array of steps to execute in auto mode")
    capture_parser.add_argument(
        "-c", "--connect-chrome", action="store_true",
        help="Connect to existing Chrome via CDP",
    )
    capture_parser.add_argument("--headless", action="store_true", help="Run in headless mode")
    capture_parser.add_argument(
        "-F", "--full-page", action="store_true",
        help="Capture full scrollable page instead of viewport",
    )
    capture_parser.add_argument(
        "--crawl", action="store_true",
        help="Enable crawl mode to discover and capture pages",
    )
    capture_parser.add_argument(
        "--depth", type=int, default=2,
        help="Max crawl depth (default: 2)",
    )
    capture_parser.add_argument(
        "--max-pages", type=int, default=50,
        help="Max pages to capture (default: 50)",
    )
    capture_parser.add_argument("--exclude", help="Comma-separated URL patterns to skip")
    capture_parser.set_defaults(func=capture_command)

    # Projects command parser
    projects_parser = subparsers.add_parser("projects", help="List captured projects.")
    projects_parser.add_argument(
        "--output", "-o", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    projects_parser.set_defaults(func=projects_command)

    # Show command parser
    show_parser = subparsers.add_parser("show", help="Show a project's flow tree.")
    show_parser.add_argument("project", help="Project name")
    show_parser.add_argument(
        "--output", "-o", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    show_parser.set_defaults(func=show_command)

    # Delete command parser
    delete_parser = subparsers.add_parser("delete", help="Delete a project and its screenshots.")
    delete_parser.add_argument("project", help="Project name")
    delete_parser.set_defaults(func=delete_command)

    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
