# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Default configuration.
"""

from davprops.path_normalizer import MAX_PATH_LENGTH

__docformat__ = "reStructuredText"

# Use these settings, if config file does not define them (or is totally missing)
DEFAULT_VERBOSE = 3
DEFAULT_LOGGER_DATE_FORMAT = "%H:%M:%S"
DEFAULT_LOGGER_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)-8s: %(message)s"

DEFAULT_CONFIG = {
    #: Verbose Output
    #: 0 - no output
    #: 1 - no output (excepting application exceptions)
    #: 2 - show warnings
    #: 3 - show info messages
    #: 4 - show debug messages
    #: 5 - show debug messages and SQL statements
    "verbose": DEFAULT_VERBOSE,
    #: Log options
    "logging": {
        "enable": None,  # True: activate 'davprops' logger (in library mode)
        "logger_date_format": DEFAULT_LOGGER_DATE_FORMAT,
        "logger_format": DEFAULT_LOGGER_FORMAT,
        "enable_loggers": [],
    },
    #: Database that holds the properties table
    "property_storage": {
        "url": "sqlite://",  # Any SQLAlchemy database URL (default: in-memory)
        "table_name": "properties",
        "echo": False,  # True: log all SQL statements
        "create_schema": True,  # Create the table if it does not exist
    },
    #: Longer resource paths are stored as SHA-1 hash
    "max_path_length": MAX_PATH_LENGTH,
}
