# pylint: disable=logging-fstring-interpolation
"""This module can be used to start loopqueue."""

import logging
import os
import sys

import click

from loopqueue.runner import Runner
from loopqueue.util.configuration import Configuration, InvalidConfigurationError
from loopqueue.util.defaults import EXITCODES
from loopqueue.util.helper import get_versions_string

EPILOG_STR = "Configuration files are YAML or JSON, later files override earlier ones."

logger = logging.getLogger("root")


def _print_version(config: "Configuration") -> None:
    print(get_versions_string(config))
    sys.exit(EXITCODES.SUCCESS)


def _get_configuration(config_paths: tuple[str]) -> Configuration:
    try:
        config = Configuration.from_sources(config_paths)
        logger.info("Log level set to '%s'", config.logger.level)
        return config
    except InvalidConfigurationError as error:
        logger.error("InvalidConfigurationError: %s", error)
        sys.exit(EXITCODES.CONFIGURATION_ERROR)


@click.group(name="loopqueue")
@click.version_option(version=get_versions_string(), message="%(version)s")
def cli() -> None:
    """
    loopqueue runs values through bounded concurrency worker queues on an event loop.
    """


@cli.command(short_help="Run a synthetic workload through a worker queue", epilog=EPILOG_STR)
@click.argument("configs", nargs=-1, required=False)
@click.option(
    "--version",
    is_flag=True,
    default=False,
    help="Print version and exit (includes also config version)",
)
def run(configs: tuple[str], version=None) -> None:
    """
    Run the configured workload and print a summary as json.

    CONFIGS are paths to configuration files. Without any, the defaults are used.
    """
    configuration = _get_configuration(configs)
    runner = Runner(configuration)
    runner.setup_logging()
    if version:
        _print_version(configuration)
    for version_line in get_versions_string(configuration).split("\n"):
        logger.info(version_line)
    logger.debug(f"Config path: {configs}")
    try:
        summary = runner.run()
    # pylint: disable=broad-except
    except Exception as error:
        if os.environ.get("DEBUG", False):
            logger.exception(f"A critical error occurred: {error}")  # pragma: no cover
        else:
            logger.critical(f"A critical error occurred: {error}")
        sys.exit(EXITCODES.ERROR)
    # pylint: enable=broad-except
    finally:
        runner.stop()
    click.echo(summary.as_json())


if __name__ == "__main__":
    cli()
