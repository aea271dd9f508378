"""
cli
===

:Author: Martin Wendt
:Copyright: Licensed under the MIT license, see LICENSE file in this package.

Command line tool to administer a DavProps property database.

Configuration is defined like this:

    1. Get the name of a configuration file from command line option
       ``--config=FILENAME`` (or short ``-cFILENAME``).
       If this option is omitted, we use ``davprops.yaml`` in the current
       directory (if it exists).
    2. Set reasonable default settings.
    3. If configuration file exists: read and use it to overwrite defaults.
    4. ``--verbose`` / ``--quiet`` override the ``verbose`` setting.

Commands:

    ``init``
        Create the properties table.
    ``dump --user USER PATH``
        Print the properties that USER stored at PATH.
"""

import argparse
import os
import sys

import yaml
from json5 import load as json_load

from davprops import __version__, util
from davprops.custom_properties import PropertyBackendFactory
from davprops.default_conf import DEFAULT_VERBOSE
from davprops.prop_error import PropertyStoreError
from davprops.storage import init_schema
from davprops.value_codec import ComplexXml

__docformat__ = "reStructuredText"

#: Try this config files if no --config=... option is specified
DEFAULT_CONFIG_FILES = ("davprops.yaml", "davprops.json")

_logger = util.get_module_logger(__name__)


class FullExpandedPath(argparse.Action):
    """Expand user- and relative-paths"""

    def __call__(self, parser, namespace, values, option_string=None):
        new_val = os.path.abspath(os.path.expanduser(values))
        setattr(namespace, self.dest, new_val)


def _init_command_line_options(argv=None):
    """Parse command line options into a dictionary."""
    description = """\

Administer a DavProps property database.

Examples:

  Create the properties table:
    davprops init --config=~/davprops.yaml

  Show all properties of user 'joe' on a calendar:
    davprops dump --user=joe calendars/joe/personal
  """

    parser = argparse.ArgumentParser(
        prog="davprops",
        description=description,
        allow_abbrev=False,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    qv_group = parser.add_mutually_exclusive_group()
    qv_group.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=DEFAULT_VERBOSE,
        help="increment verbosity by one (default: %(default)s, range: 0..5)",
    )
    qv_group.add_argument(
        "-q", "--quiet", default=0, action="count", help="decrement verbosity by one"
    )

    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        action=FullExpandedPath,
        help=(
            f"configuration file (default: {DEFAULT_CONFIG_FILES} in current directory)"
        ),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="print version info and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="create the properties table")

    sp = subparsers.add_parser("dump", help="print the properties of a resource")
    sp.add_argument("path", help="resource path, e.g. 'files/joe/doc.txt'")
    sp.add_argument("-u", "--user", required=True, help="owner of the properties")
    sp.add_argument(
        "-p",
        "--prop",
        dest="prop_names",
        action="append",
        default=[],
        help="property name in Clark notation (repeatable, default: all)",
    )

    args = parser.parse_args(argv)

    args.verbose -= args.quiet
    del args.quiet

    if args.version:
        print(f"{__version__}")
        sys.exit()

    if not args.command:
        parser.error("Missing command (expected 'init' or 'dump')")

    if args.config_file is None:
        # If --config was omitted, use default (if it exists)
        for filename in DEFAULT_CONFIG_FILES:
            defPath = os.path.abspath(filename)
            if os.path.exists(defPath):
                if args.verbose >= 3:
                    print(f"Using default configuration file: {defPath}")
                args.config_file = defPath
                break
    elif not os.path.isfile(args.config_file):
        parser.error(f"Could not find specified configuration file: {args.config_file}")

    return args.__dict__.copy()


def _read_config_file(config_file):
    """Read configuration file options into a dictionary."""

    config_file = os.path.abspath(config_file)

    if not os.path.exists(config_file):
        raise RuntimeError(f"Couldn't open configuration file {config_file!r}.")

    if config_file.endswith(".json"):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = json_load(fp)

    elif config_file.endswith(".yaml"):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = yaml.safe_load(fp)

    else:
        raise RuntimeError(
            f"Unsupported config file format (expected yaml or json): {config_file}"
        )

    conf = conf or {}
    conf["_config_file"] = config_file
    return conf


def _init_config(cli_opts):
    """Setup configuration dictionary from configuration file and command line."""
    config = {}
    config_file = cli_opts.get("config_file")
    if config_file:
        config = _read_config_file(config_file)
    config["verbose"] = cli_opts["verbose"]
    config.setdefault("logging", {})["enable"] = True
    return config


def _format_value(value):
    if isinstance(value, ComplexXml):
        return value.xml
    return f"{value!r}" if not util.is_str(value) else value


def _dump(factory, cli_opts):
    backend = factory.for_user(cli_opts["user"])
    props = backend.store.lookup_owner(cli_opts["path"], cli_opts["prop_names"])
    if not props:
        print(f"No properties found for {cli_opts['user']!r} at {cli_opts['path']!r}.")
        return
    for name in sorted(props, key=util.split_namespace):
        ns, localname = util.split_namespace(name)
        print(f"{localname} [{ns}]: {_format_value(props[name])}")


def run(argv=None):
    cli_opts = _init_command_line_options(argv)
    config = _init_config(cli_opts)

    try:
        factory = PropertyBackendFactory(config)
    except ValueError as e:
        _logger.error(f"{e}")
        return 2
    except PropertyStoreError as e:
        _logger.error(e.get_user_info())
        return 1

    try:
        if cli_opts["command"] == "init":
            # Also when the configuration disables create_schema
            init_schema(factory.engine, factory.table)
            _logger.info(f"Properties table ready: {factory!r}")
        elif cli_opts["command"] == "dump":
            _dump(factory, cli_opts)
    except PropertyStoreError as e:
        _logger.error(e.get_user_info())
        return 1
    finally:
        factory.close()
    return 0


if __name__ == "__main__":
    sys.exit(run())
