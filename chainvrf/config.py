"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details

Configuration settings for chainvrf.

Settings are read from a JSON file in the data directory, and command-line
flags override them.
"""

import argparse
import logging
import os
import sys

from appdirs import AppDirs

from chainvrf.util import helpers
from chainvrf.vrf import vrf


# Set the data directory in a OS-appropriate location. It is created when the
# configuration is loaded.
_ad = AppDirs("chainvrf", False)
DATA_DIR = _ad.user_data_dir

# The master configuration file name.
CONFIG_NAME = "chainvrf.conf"

logLevelMap = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "notset": logging.NOTSET,
    "0": logging.NOTSET,
}


def logLvl(s):
    """
    Get the log level from the map.

    Args:
        s (str): A string which is a key for the logLevelMap. Case-insensitive.
    """
    return logLevelMap[s.lower()]


class CmdArgs:
    """
    CmdArgs are the configuration options, from the settings file and the
    command line.
    """

    def __init__(self, argv=None):
        """
        Args:
            argv (list(str)): optional. The arguments to parse. Defaults to
                sys.argv[1:]. Arguments that are not configuration options are
                left in the remaining attribute.
        """
        self.logLevel = logging.INFO
        self.moduleLevels = {}
        parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
        parser.add_argument("--loglevel")
        parser.add_argument("--max-hash-attempts", dest="maxHashAttempts", type=int)
        parser.add_argument("--datadir")
        args, self.remaining = parser.parse_known_args(argv)

        self.dataDir = args.datadir if args.datadir else DATA_DIR
        if not helpers.mkdir(self.dataDir):
            sys.exit(f"data directory is a file: {self.dataDir}")
        self.configPath = os.path.join(self.dataDir, CONFIG_NAME)
        try:
            self.settings = helpers.fetchSettingsFile(self.configPath)
        except ValueError:
            sys.exit(f"malformed settings file: {self.configPath}")

        self.maxHashAttempts = self.settings.get(
            "maxHashAttempts", vrf.DEFAULT_MAX_HASH_ATTEMPTS
        )
        if args.maxHashAttempts is not None:
            self.maxHashAttempts = args.maxHashAttempts
        if not isinstance(self.maxHashAttempts, int) or self.maxHashAttempts < 0:
            sys.exit(f"invalid max-hash-attempts: {self.maxHashAttempts}")

        loglevel = args.loglevel if args.loglevel else self.settings.get("logLevel")
        if loglevel:
            try:
                if any(ch in loglevel for ch in (",", ":")):
                    pairs = (s.split(":") for s in loglevel.split(","))
                    self.moduleLevels = {k: logLvl(v) for k, v in pairs}
                else:
                    self.logLevel = logLvl(loglevel)
            except Exception:
                sys.exit(f"malformed loglevel specifier: {loglevel}")

    def save(self):
        """
        Write the settings file.
        """
        helpers.saveJSON(self.configPath, self.settings, indent=4, sort_keys=True)


vrfConfig = None


def load(argv=None):
    """
    Load and return the current configuration. The configuration is only loaded
    once. Successive calls to the modular `load` function will return the same
    instance.

    Returns:
        CmdArgs: The current configuration.
    """
    global vrfConfig
    if not vrfConfig:
        vrfConfig = CmdArgs(argv)
    return vrfConfig
