"""
Build history log parsing.

The symbol store tool appends one comma-separated record per publication
to ``000Admin/server.txt``:

    0000000001,add,file,07/04/2017,14:44:14,"UDPv6.5U2","4175.2-538","2017/7/4_14:44:14",

Fields are positional: id, action, kind, date, time, branch, version,
comment. Anything after the eighth field is ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime

from symsync.core.branch.models import DATE_FORMAT, Build

module_logger = logging.getLogger(__name__)

MIN_FIELDS = 8
HISTORY_DATE_FORMAT = "%m/%d/%Y %H:%M:%S"


def _unquote(value: str) -> str:
    return value.strip('"')


def format_history_date(date: str, time: str, logger: logging.Logger | None = None) -> str:
    """
    Combine the date and time fields of a history record.

    Returns the timestamp reformatted as ``YYYY-MM-DD HH:MM:SS``, or the raw
    ``"<date> <time>"`` text when it does not parse.
    """
    raw = f"{date} {time}"
    try:
        return datetime.strptime(raw, HISTORY_DATE_FORMAT).strftime(DATE_FORMAT)
    except ValueError as e:
        (logger or module_logger).warning("Failed to parse history date %r: %s", raw, e)
        return raw


def parse_history_line(line: str, logger: logging.Logger | None = None) -> Build | None:
    """
    Parse one line of the history log.

    Args:
        line: Raw line, with or without its line terminator
        logger: Logger for date warnings instead of the module logger

    Returns:
        The Build described by the line, or None if the line has fewer
        than eight comma-separated fields
    """
    line = line.strip("\r\n")
    fields = line.split(",")
    if len(fields) < MIN_FIELDS:
        return None

    return Build(
        id=fields[0],
        date=format_history_date(fields[3], fields[4], logger),
        branch=_unquote(fields[5]),
        version=_unquote(fields[6]),
        comment=_unquote(fields[7]),
    )
