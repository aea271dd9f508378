# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Miscellaneous support functions for DavProps.
"""

import collections.abc
import logging
import sys

__docformat__ = "reStructuredText"

#: The base logger (silent by default)
BASE_LOGGER_NAME = "davprops"

_VERBOSE_LEVELS = {
    0: logging.CRITICAL,
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.INFO,
}


# ========================================================================
# String tools
# ========================================================================


def is_str(s):
    """Return True for native strings."""
    return isinstance(s, str)


def to_bytes(s, encoding="utf8"):
    """Convert a text string (unicode) to bytestring."""
    if type(s) is not bytes:
        s = bytes(s, encoding)
    return s


def to_str(s, encoding="utf8"):
    """Convert data to native str type."""
    if type(s) is bytes:
        s = str(s, encoding)
    elif type(s) is not str:
        s = str(s)
    return s


def split_namespace(clark_name):
    """Return (namespace, localname) for a property name in Clark notation.

    '{DAV:}getetag' -> ('DAV:', 'getetag'), 'color' -> ('', 'color')
    """
    if clark_name.startswith("{") and "}" in clark_name:
        ns, localname = clark_name.split("}", 1)
        return (ns[1:], localname)
    return ("", clark_name)


def unique_list(seq):
    """Return a list of the items in `seq`, dropping duplicates but keeping order."""
    seen = set()
    res = []
    for item in seq:
        if item not in seen:
            seen.add(item)
            res.append(item)
    return res


# ========================================================================
# Config tools
# ========================================================================


def get_section(config, name):
    """Return the sub-dict `config[name]`.

    A missing section or an empty YAML entry (``property_storage:``) is
    returned as ``{}``.
    """
    return config.get(name) or {}


def describe_unknown_keys(keys, known, section=None):
    """Return an error message if `keys` contains names not in `known`, else None."""
    unknown = sorted(set(keys).difference(known))
    if not unknown:
        return None
    where = f" in {section!r}" if section else ""
    return "Unknown option(s){}: {} (expected one of: {})".format(
        where, ", ".join(unknown), ", ".join(sorted(known))
    )


def deep_update(d, u):
    """Merge mapping `u` into `d` (recursively for nested dicts) and return `d`."""
    for k, v in u.items():
        if isinstance(v, collections.abc.Mapping) and isinstance(d.get(k), dict):
            deep_update(d[k], v)
        elif isinstance(v, collections.abc.Mapping):
            d[k] = deep_update({}, v)
        elif v is None and isinstance(d.get(k), dict):
            # Empty YAML section: keep the defaults
            continue
        else:
            d[k] = v
    return d


# ========================================================================
# Logging
# ========================================================================


def init_logging(config):
    """Attach a console handler to the 'davprops' base logger.

    ``config["verbose"]`` selects the level of the base logger:
    0: CRITICAL, 1: ERROR, 2: WARNING, 3: INFO, 4 and 5: DEBUG
    (5 also makes the storage engine echo SQL statements).

    Module loggers listed in ``config["logging"]["enable_loggers"]``, e.g.
    ``["property_store"]``, print DEBUG messages even if verbose is 3.
    """
    from davprops.default_conf import DEFAULT_LOGGER_DATE_FORMAT, DEFAULT_LOGGER_FORMAT

    verbose = config.get("verbose", 3)
    log_opts = get_section(config, "logging")

    formatter = logging.Formatter(
        log_opts.get("logger_format", DEFAULT_LOGGER_FORMAT),
        log_opts.get("logger_date_format", DEFAULT_LOGGER_DATE_FORMAT),
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger(BASE_LOGGER_NAME)
    logger.setLevel(_VERBOSE_LEVELS.get(max(verbose, 0), logging.DEBUG))
    # Don't call the root's handlers after our custom handler
    logger.propagate = False

    # Replace previous handlers (including the library's NullHandler)
    for hdlr in logger.handlers[:]:
        hdlr.flush()
        logger.removeHandler(hdlr)
    logger.addHandler(handler)

    if verbose >= 3:
        for name in log_opts.get("enable_loggers") or ():
            get_module_logger(name.strip()).setLevel(logging.DEBUG)


def get_module_logger(moduleName):
    """Return the logger 'davprops.<moduleName>' (a child of the base logger)."""
    if not moduleName.startswith(BASE_LOGGER_NAME + "."):
        moduleName = BASE_LOGGER_NAME + "." + moduleName
    return logging.getLogger(moduleName)
