"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Logging and settings-file helpers.
"""

import json
import logging
from logging import Logger
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import sys
import tempfile
import traceback
from typing import Any, Dict, Optional, Union


LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(funcName)s(%(lineno)d) %(message)s"

# Rotating log files are capped at this size.
MAX_LOG_BYTES = 5 * 1024 * 1024


def formatTraceback(err: Exception) -> str:
    """
    Format a traceback for an error so that it can go into logs.

    Args:
        err: The error the traceback is extracted from.

    Returns:
        The standard formatting of the traceback, ending with the error.
    """
    return "".join(traceback.format_exception(type(err), err, err.__traceback__))


def mkdir(path: Union[Path, str]) -> bool:
    """
    Create the directory if it doesn't exist.

    Args:
        path: the directory path.

    Returns:
        False if a file is in the way, else True.
    """
    if os.path.isdir(path):
        return True
    if os.path.isfile(path):
        return False
    os.makedirs(path)
    return True


class LogSettings:
    """
    Used to track a few logging-related settings. All chainvrf loggers are
    children of the package logger, so that configuring them leaves the
    application's other loggers alone.
    """

    root = logging.getLogger("chainvrf")
    defaultLevel = logging.INFO
    moduleLevels: Dict[str, int] = {}
    loggers: Dict[str, Logger] = {}
    handlers: Dict[str, logging.Handler] = {}


# Children set to NOTSET inherit this, so they log everything.
LogSettings.root.setLevel(1)


def _setHandler(key: str, handler: logging.Handler) -> None:
    old = LogSettings.handlers.pop(key, None)
    if old:
        LogSettings.root.removeHandler(old)
        old.close()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    LogSettings.root.addHandler(handler)
    LogSettings.handlers[key] = handler


def prepareLogging(
    filepath: Union[Path, str, None] = None,
    logLvl: int = logging.INFO,
    lvlMap: Optional[Dict[str, int]] = None,
) -> None:
    """
    Prepare for using getLogger. Logs to stderr. If filepath is provided, log
    outputs will also be saved to a rotating log file at the specified
    location. Any loggers, both future loggers and those already created, will
    have their levels set according to the new logLvl and lvlMap. Calling
    again replaces the handlers from the previous call.

    Args:
        filepath: The base name for the rotating log file.
        logLvl: The default logging level used for all new loggers without
            entries in the lvlMap.
        lvlMap: The name->level mapping will be added to the stored level dict,
            which is referenced when loggers are created using getLogger.
    """
    LogSettings.defaultLevel = logLvl
    LogSettings.moduleLevels.update(lvlMap if lvlMap else {})
    for name, logger in LogSettings.loggers.items():
        logger.setLevel(LogSettings.moduleLevels.get(name, LogSettings.defaultLevel))

    if filepath:
        _setHandler(
            "file",
            RotatingFileHandler(filepath, mode="a", maxBytes=MAX_LOG_BYTES, backupCount=2),
        )
    # pythonw has no console.
    if not sys.executable.endswith("pythonw.exe"):
        _setHandler("console", logging.StreamHandler())


def getLogger(name: str) -> Logger:
    """
    Gets a named logger. If the name has a log level registered with
    prepareLogging, that level will be used, otherwise the default is used.

    Args:
        name: The logger name, such as "VRF".
    """
    l = LogSettings.root.getChild(name)
    l.setLevel(LogSettings.moduleLevels.get(name, LogSettings.defaultLevel))
    LogSettings.loggers[name] = l
    return l


def saveFile(path: Union[Path, str], contents: str) -> None:
    """
    Atomic file save. The contents are written to a temporary file in the
    destination directory, which then replaces the destination.

    Args:
        path: The destination path.
        contents: The text to write.
    """
    dirPath = os.path.dirname(os.path.abspath(path))
    fd, tmpPath = tempfile.mkstemp(dir=dirPath, suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmpPath, path)
    except BaseException:
        os.remove(tmpPath)
        raise


def saveJSON(path: Union[Path, str], thing: Any, **kwargs: Any) -> None:
    """
    Save the JSON-encodable thing to path, atomically. kwargs are passed to
    json.dumps.
    """
    saveFile(path, json.dumps(thing, **kwargs))


def fetchSettingsFile(path: Union[Path, str]) -> Dict[str, Any]:
    """
    Fetches the JSON settings file, creating an empty json object if necessary.

    Args:
        path: The settings file path.

    Returns:
        The decoded settings.

    Raises:
        ValueError: The file is not a JSON object.
    """
    if not os.path.isfile(path):
        saveFile(path, "{}")
    with open(path) as f:
        settings = json.loads(f.read())
    if not isinstance(settings, dict):
        raise ValueError(f"settings file {path} is not a JSON object")
    return settings
