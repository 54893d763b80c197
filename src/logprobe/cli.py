"""Command line front end for the log probe.

Prints a single status line on stdout and exits with the standard monitoring
plugin codes: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN. Usage errors exit
UNKNOWN rather than click's default of 2, which would read as CRITICAL.
"""

from __future__ import annotations

import logging
import sys

import click
from click.core import ParameterSource

from . import __version__
from .config import build_config
from .errors import UsageError
from .logging_setup import setup_logging
from .models import Severity
from .probe import run_probe
from .thresholds import sanitize

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("-l", "--logfile", type=str, help="Log file to monitor")
@click.option("-s", "--seekfile", type=str, help="Position file for this log file (one per log)")
@click.option("-p", "--pattern", type=str, help="Regular expression of alertable lines")
@click.option("-n", "--negpattern", type=str, help="Regular expression of lines to ignore")
@click.option("-f", "--negpatternfile", type=str, help="File of patterns to ignore, one per line (overrides -n)")
@click.option("-i", "--case-insensitive", is_flag=True, help="Match patterns case-insensitively")
@click.option("-w", "--warning", type=int, default=1, show_default=True, help="Matches needed for WARNING")
@click.option("-c", "--critical", type=int, default=0, show_default=True, help="Matches needed for CRITICAL (0 disables)")
@click.option("-d", "--no-growth-warning", is_flag=True, help="Return UNKNOWN if the log was not written to")
@click.option("-D", "--no-growth-critical", is_flag=True, help="Return CRITICAL if the log was not written to")
@click.option("-e", "--eval", "eval_code", type=str, help="Rule expression evaluated for each matched line")
@click.option("-E", "--eval-file", type=str, help="File holding the rule expression (overrides -e)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML file with option defaults")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Diagnostics level on stderr",
)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write JSON-lines diagnostics here")
@click.version_option(__version__, "-V", "--version", prog_name="logprobe")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **options) -> None:
    """Scan newly appended log lines for a pattern and report a status.

    Examples:

        # Warn on any new ERROR line, go critical at 10
        logprobe -l /var/log/app.log -s /var/tmp/app.seek -p ERROR -c 10

        # Ignore known noise listed in a file
        logprobe -l app.log -s app.seek -p ERROR -f ignore.txt

        # Only alert on slow requests
        logprobe -l app.log -s app.seek -p took \\
            -e 'search(r"took (\\d+)ms") and int(group(1)) > 500'

        # Critical when the log stops growing
        logprobe -l app.log -s app.seek -D
    """
    overrides = {
        name: value
        for name, value in options.items()
        if ctx.get_parameter_source(name) is not ParameterSource.DEFAULT
    }

    try:
        config = build_config(overrides, config_path)
        config.validate()
        setup_logging(config.log_level, config.log_file)
    except (UsageError, ValueError) as e:
        raise click.UsageError(str(e), ctx=ctx) from e

    report = run_probe(config)
    click.echo(str(report))
    ctx.exit(report.exit_code)


def main(argv: list[str] | None = None) -> None:
    """Console entry point mapping every failure onto a monitoring exit code."""
    try:
        code = cli.main(args=argv, prog_name="logprobe", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        code = Severity.UNKNOWN.exit_code
    except click.Abort:
        click.echo("UNKNOWN: Aborted", err=True)
        code = Severity.UNKNOWN.exit_code
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"UNKNOWN: Unexpected error: {sanitize(str(e))}")
        code = Severity.UNKNOWN.exit_code

    sys.exit(code if isinstance(code, int) else 0)


if __name__ == "__main__":
    main()
