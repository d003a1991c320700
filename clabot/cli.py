import argparse
import asyncio
import logging
import sys

import httpx
from rich.console import Console
from rich.table import Table

from clabot import actions
from clabot.author_map import AuthorMap
from clabot.cla_file import ClaFileError
from clabot.cla_runner import ClaRunner
from clabot.settings import InputSettings, SettingsError

console = Console(stderr=True)


class ClaBotCLI:
    def _print_error(self, message: str):
        console.print(f"[red]❌ Error: {message}[/red]")

    def _print_summary(self, author_map: AuthorMap):
        table = Table(title="CLA signatures", show_header=True)
        table.add_column("Author")
        table.add_column("GitHub account")
        table.add_column("Status")
        for author, signed in author_map:
            status = "[green]signed[/green]" if signed else "[red]not signed[/red]"
            table.add_row(author.name, "yes" if author.linked else "no", status)
        console.print(table)

    async def _execute(self, runner: ClaRunner) -> bool:
        try:
            return await runner.execute()
        finally:
            await runner.aclose()

    def run(self, settings: InputSettings) -> int:
        runner = ClaRunner(settings)
        try:
            passed = asyncio.run(self._execute(runner))
        except httpx.HTTPStatusError as e:
            self._print_error(
                f"GitHub API call failed: {e.response.status_code} {e.request.method} {e.request.url}"
            )
            return 1
        except httpx.HTTPError as e:
            self._print_error(f"GitHub API call failed: {e}")
            return 1
        except ClaFileError as e:
            self._print_error(str(e))
            return 1

        if runner.author_map is not None:
            self._print_summary(runner.author_map)
            unsigned = ", ".join(a.name for a in runner.author_map.unsigned_authors())
            actions.set_output("unsigned", unsigned)
        actions.set_output("all-signed", "true" if passed else "false")

        if passed:
            console.print("[green]✅ All required authors have signed the CLA.[/green]")
            return 0
        return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cla-signature-bot",
        description="Enforce Contributor License Agreement signatures on pull requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Runs inside a GitHub Actions workflow triggered by pull_request_target
or issue_comment events. Action inputs are read from INPUT_* variables.

Environment Variables:
  GITHUB_TOKEN        Token for the repository under review
  GITHUB_REPOSITORY   owner/name of the repository
  GITHUB_EVENT_NAME   Name of the triggering event
  GITHUB_EVENT_PATH   Path to the event payload JSON
        """,
    )
    parser.add_argument("--event-path", help="Event payload file (overrides GITHUB_EVENT_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli = ClaBotCLI()
    try:
        settings = InputSettings.from_env(event_path=args.event_path)
    except SettingsError as e:
        cli._print_error(str(e))
        return 2

    return cli.run(settings)


if __name__ == "__main__":
    sys.exit(main())
