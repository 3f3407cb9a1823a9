import argparse
import sys

from hurler.app_logger import setup_logging
from hurler.config import Settings
from hurler.runner import check_hurl_installed, run_hurl
from hurler.storage import StorageError, Workspace

HURL_MISSING_MESSAGE = (
    "Error: hurl is not installed or not in PATH.\n\n"
    "Hurler requires hurl to run HTTP requests.\n"
    "Install it from: https://hurl.dev/docs/installation.html\n"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hurler")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--data-dir", help="Workspace directory (default: ./.hurl)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a collection file and print the result")
    run_parser.add_argument("name", help="Collection file name, without .hurl")
    run_parser.add_argument("-e", "--env", help="Environment to pass as variables files")

    subparsers.add_parser("list", help="List collection files")
    return parser


def _print_result(result, source_text: str) -> None:
    from hurler.result_extractor import extract_response_info
    from hurler.result_summary import build_summary

    view = extract_response_info(result, source_text)
    if view.executed:
        print(f"HTTP {view.status} ({result.duration}ms)")
    else:
        print(f"Error: {result.error_message or 'request could not be executed'}")
        if view.body:
            print(view.body)
    for item in view.asserts:
        mark = "PASS" if item.success else "FAIL"
        print(f"  [{mark}] {item.label}")
        if item.actual is not None:
            print(f"         actual: {item.actual}")
            print(f"         expected: {item.expected}")
        elif not item.success and item.message:
            print(f"         {item.message}")
    summary = build_summary(view.asserts)
    if summary["total"]:
        print(f"{summary['pass']} passed, {summary['fail']} failed")


def _run_command(workspace: Workspace, settings: Settings, name: str, environment: str | None) -> int:
    try:
        source_text = workspace.read_file(name)
        variables_files = workspace.environment_files(environment) if environment else []
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    result = run_hurl(
        workspace.file_path(name),
        variables_files,
        hurl_bin=settings.hurl_bin,
        timeout=settings.timeout,
        max_output_bytes=settings.max_output_bytes,
    )
    _print_result(result, source_text)
    return 0 if result.success else 1


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        from . import __version__

        print(__version__)
        return 0

    settings = Settings.from_env(args.data_dir)
    setup_logging(settings.log_level)
    workspace = Workspace(settings)

    if args.command == "list":
        for item in workspace.describe_files():
            print(f"{item['method'] or '-':<8} {item['name']}")
        return 0

    if not check_hurl_installed(settings.hurl_bin):
        print(HURL_MISSING_MESSAGE, file=sys.stderr)
        return 1

    if args.command == "run":
        return _run_command(workspace, settings, args.name, args.env)

    workspace.ensure_dirs()
    from hurler.ui.main_window import run_app

    return run_app(settings)
