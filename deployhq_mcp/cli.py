"""
stdio entry point for the DeployHQ MCP server (local MCP clients).

Run with: deployhq-mcp [--read-only[=true|false]] [--verbose]
"""

import argparse
import logging
import sys

import anyio

from deployhq_mcp import config
from deployhq_mcp.exceptions import CliError, SetupError
from deployhq_mcp.transports import credentials_from_env
from deployhq_mcp.transports.stdio import run_stdio

log = logging.getLogger(__name__)

HELP_TEXT = """\
Usage: deployhq-mcp [flags]

Serves the DeployHQ MCP tools over stdin/stdout. Logs go to stderr.

Flags:
  --read-only[=true|false]  Block create_deployment (default: disabled)
  --skip-credential-check   Do not probe the DeployHQ API at startup
  --verbose, -v             Debug logging (same as LOG_LEVEL=debug)
  --version                 Print version and exit
  --help, -h                Show this help

Environment:
  DEPLOYHQ_EMAIL            Login email
  DEPLOYHQ_API_KEY          API key (Settings > Security in DeployHQ)
  DEPLOYHQ_ACCOUNT          Account subdomain (<account>.deployhq.com)
  DEPLOYHQ_READ_ONLY        true/false, overridden by --read-only
  DEPLOYHQ_TIMEOUT_MS       Request timeout in milliseconds (default: 30000)
  DEPLOYHQ_HTTP_LOG         Log every upstream request at debug level
"""


def _extract_global_flags(argv):
    """Pull flags that may appear anywhere in argv.

    Returns (verbose, remaining_argv). ``--read-only`` forms are dropped here;
    config.parse_read_only_flag reads them from the full argv.
    Handles --version and --help directly.
    """
    verbose = False
    remaining = []
    for arg in argv:
        if arg == "--version":
            print(f"{config.SERVER_NAME} {config.VERSION}")
            sys.exit(0)
        elif arg in ("--help", "-h"):
            print(HELP_TEXT)
            sys.exit(0)
        elif arg in ("--verbose", "-v"):
            verbose = True
        elif arg == config.READ_ONLY_FLAG or arg.startswith(config.READ_ONLY_FLAG + "="):
            continue
        else:
            remaining.append(arg)
    return verbose, remaining


class _ArgParser(argparse.ArgumentParser):
    """Parser that raises CliError instead of printing usage and exiting."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def build_parser():
    parser = _ArgParser(prog="deployhq-mcp", add_help=False)
    parser.add_argument("--skip-credential-check", action="store_true")
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    try:
        verbose, remaining = _extract_global_flags(argv)
        config.configure_logging(verbose=verbose)
        ns = build_parser().parse_args(remaining)

        server_config = config.parse_server_config(argv)
        credentials = credentials_from_env()
        if credentials is None:
            raise SetupError(
                "[SETUP_NEEDED] Missing required environment variables.\n"
                f"  Please set: {config.EMAIL_ENV}, {config.API_KEY_ENV}, {config.ACCOUNT_ENV}"
            )
        log.info(
            "Read-only mode: %s (source: %s)",
            "enabled" if server_config.read_only_mode else "disabled",
            config.get_config_source(argv),
        )
        anyio.run(run_stdio, credentials, server_config, not ns.skip_credential_check)
    except CliError as e:
        print(str(e), file=sys.stderr)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
