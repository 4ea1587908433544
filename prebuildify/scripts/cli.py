import logging
import sys
from enum import Enum

import click

from prebuildify.build.build_processor import BuildProcessor
from prebuildify.build.errors import PrebuildError
from prebuildify.build.targets import KnownTargets
from prebuildify.utils.click_helper import cmd_option, CmdOption, CmdOptionList
from prebuildify.utils.settings import Settings, SettingsError
import prebuildify.scripts.version
import typing as t


Settings().load_files()


class ErrorCode(Enum):
    NO_ERROR = 0
    PROGRAM_ERROR = 1
    ABORTED = 255


@click.group(epilog="""
prebuildify (version {})

Options that aren't passed are read from the settings files
(prebuildify.yaml in the current directory and config.yaml in the
application directory) and the PREBUILD_* environment variables.
""".format(prebuildify.scripts.version.version))
def cli():
    pass


command_docs = {
    "build": "Build the module for all targets and place the results in the prebuilds directory",
    "targets": "List the known targets with their ABI versions",
    "init": "Create a new settings file with the current settings",
    "version": "Print the current version ({})".format(prebuildify.scripts.version.version)
}

common_options = CmdOptionList(
    CmdOption.from_settings_domain("")
)

build_options = CmdOptionList(
    CmdOption.from_settings_domain("build")
).set_short("targets", "t")


@cli.command(short_help=command_docs["build"])
@cmd_option(CmdOptionList(common_options, build_options))
def build(**kwargs):
    prebuildify__build(**kwargs)


def prebuildify__build(**kwargs):
    try:
        BuildProcessor().build()
    except (PrebuildError, OSError) as err:
        logging.error(str(err))
        sys.exit(ErrorCode.PROGRAM_ERROR.value)
    except KeyboardInterrupt:
        logging.error("Aborted")
        sys.exit(ErrorCode.ABORTED.value)


@cli.command(short_help=command_docs["targets"])
@click.option("--runtime", "-r", type=str, default=None, help="Only list the targets of this runtime")
@cmd_option(common_options)
def targets(runtime: t.Optional[str], **kwargs):
    prebuildify__targets(runtime)


def prebuildify__targets(runtime: t.Optional[str] = None):
    for entry in KnownTargets.default():
        if runtime is None or entry.runtime == runtime:
            print("{}@{} {}".format(entry.runtime, entry.version, entry.abi))


@cli.command(short_help=command_docs["init"])
@click.argument("file", default=Settings.config_file_name)
@cmd_option(common_options)
def init(file: str, **kwargs):
    prebuildify__init(file)


def prebuildify__init(file: str):
    Settings().store_into_file(file)
    logging.info("Created {}".format(file))


@cli.command(short_help=command_docs["version"])
def version():
    print(prebuildify.scripts.version.version)


def cli_with_error_catching():
    """
    Process the command line arguments and catch (some) errors.
    """
    try:
        cli()
    except (EnvironmentError, SettingsError) as err:
        logging.error(err)
        exit(ErrorCode.PROGRAM_ERROR.value)


if __name__ == "__main__":
    cli_with_error_catching()
