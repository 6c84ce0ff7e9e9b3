"""
Go reference-time layouts.

Go describes time formats by example, writing the reference time
``Mon Jan 2 15:04:05 MST 2006`` the way the value should look. This module
tokenizes such layouts and parses values against them with the semantics
of Go's ``time.Parse``: the same greedy number scanning, the same range
checks and the same error text.
"""

import json
from dataclasses import dataclass
from enum import Enum, auto


class Std(Enum):
    """Layout elements recognised inside a layout string."""

    LONG_MONTH = auto()  # January
    MONTH = auto()  # Jan
    NUM_MONTH = auto()  # 1
    ZERO_MONTH = auto()  # 01
    LONG_WEEKDAY = auto()  # Monday
    WEEKDAY = auto()  # Mon
    DAY = auto()  # 2
    UNDER_DAY = auto()  # _2
    ZERO_DAY = auto()  # 02
    UNDER_YEARDAY = auto()  # __2
    ZERO_YEARDAY = auto()  # 002
    HOUR = auto()  # 15
    HOUR12 = auto()  # 3
    ZERO_HOUR12 = auto()  # 03
    MINUTE = auto()  # 4
    ZERO_MINUTE = auto()  # 04
    SECOND = auto()  # 5
    ZERO_SECOND = auto()  # 05
    LONG_YEAR = auto()  # 2006
    YEAR = auto()  # 06
    PM = auto()  # PM
    LOWER_PM = auto()  # pm
    TZ = auto()  # MST
    ISO8601_TZ = auto()  # Z0700
    ISO8601_SECONDS_TZ = auto()  # Z070000
    ISO8601_SHORT_TZ = auto()  # Z07
    ISO8601_COLON_TZ = auto()  # Z07:00
    ISO8601_COLON_SECONDS_TZ = auto()  # Z07:00:00
    NUM_TZ = auto()  # -0700
    NUM_SECONDS_TZ = auto()  # -070000
    NUM_SHORT_TZ = auto()  # -07
    NUM_COLON_TZ = auto()  # -07:00
    NUM_COLON_SECONDS_TZ = auto()  # -07:00:00
    FRAC_SECOND0 = auto()  # ,000 or .000
    FRAC_SECOND9 = auto()  # ,999 or .999


@dataclass(frozen=True)
class Chunk:
    """One step of layout tokenization: literal prefix, element, rest."""

    prefix: str
    std: Std | None
    suffix: str
    digits: int = 0  # fractional-second width


_ZERO_STD = {
    "1": Std.ZERO_MONTH,
    "2": Std.ZERO_DAY,
    "3": Std.ZERO_HOUR12,
    "4": Std.ZERO_MINUTE,
    "5": Std.ZERO_SECOND,
    "6": Std.YEAR,
}

# Longest spelling first: the first prefix that matches wins.
_NUM_TZ = (
    ("-070000", Std.NUM_SECONDS_TZ),
    ("-07:00:00", Std.NUM_COLON_SECONDS_TZ),
    ("-0700", Std.NUM_TZ),
    ("-07:00", Std.NUM_COLON_TZ),
    ("-07", Std.NUM_SHORT_TZ),
)
_ISO_TZ = (
    ("Z070000", Std.ISO8601_SECONDS_TZ),
    ("Z07:00:00", Std.ISO8601_COLON_SECONDS_TZ),
    ("Z0700", Std.ISO8601_TZ),
    ("Z07:00", Std.ISO8601_COLON_TZ),
    ("Z07", Std.ISO8601_SHORT_TZ),
)

LONG_DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
SHORT_DAY_NAMES = tuple(name[:3] for name in LONG_DAY_NAMES)
LONG_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
SHORT_MONTH_NAMES = tuple(name[:3] for name in LONG_MONTH_NAMES)

_DAYS_BEFORE = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334, 365)


def _is_digit(s: str, i: int) -> bool:
    return i < len(s) and "0" <= s[i] <= "9"


def _starts_with_lower(s: str) -> bool:
    return bool(s) and "a" <= s[0] <= "z"


def next_chunk(layout: str) -> Chunk:
    """Find the first layout element in ``layout``."""
    n = len(layout)
    for i, c in enumerate(layout):
        rest = layout[i:]
        if c == "J" and rest.startswith("Jan"):
            if rest.startswith("January"):
                return Chunk(layout[:i], Std.LONG_MONTH, layout[i + 7 :])
            if not _starts_with_lower(layout[i + 3 :]):
                return Chunk(layout[:i], Std.MONTH, layout[i + 3 :])
        elif c == "M":
            if rest.startswith("Mon"):
                if rest.startswith("Monday"):
                    return Chunk(layout[:i], Std.LONG_WEEKDAY, layout[i + 6 :])
                if not _starts_with_lower(layout[i + 3 :]):
                    return Chunk(layout[:i], Std.WEEKDAY, layout[i + 3 :])
            if rest.startswith("MST"):
                return Chunk(layout[:i], Std.TZ, layout[i + 3 :])
        elif c == "0":
            if i + 1 < n and layout[i + 1] in _ZERO_STD:
                return Chunk(layout[:i], _ZERO_STD[layout[i + 1]], layout[i + 2 :])
            if rest.startswith("002"):
                return Chunk(layout[:i], Std.ZERO_YEARDAY, layout[i + 3 :])
        elif c == "1":
            if rest.startswith("15"):
                return Chunk(layout[:i], Std.HOUR, layout[i + 2 :])
            return Chunk(layout[:i], Std.NUM_MONTH, layout[i + 1 :])
        elif c == "2":
            if rest.startswith("2006"):
                return Chunk(layout[:i], Std.LONG_YEAR, layout[i + 4 :])
            return Chunk(layout[:i], Std.DAY, layout[i + 1 :])
        elif c == "_":
            if rest.startswith("_2"):
                # "_2006" is a literal underscore followed by the long year.
                if rest.startswith("_2006"):
                    return Chunk(layout[: i + 1], Std.LONG_YEAR, layout[i + 5 :])
                return Chunk(layout[:i], Std.UNDER_DAY, layout[i + 2 :])
            if rest.startswith("__2"):
                return Chunk(layout[:i], Std.UNDER_YEARDAY, layout[i + 3 :])
        elif c == "3":
            return Chunk(layout[:i], Std.HOUR12, layout[i + 1 :])
        elif c == "4":
            return Chunk(layout[:i], Std.MINUTE, layout[i + 1 :])
        elif c == "5":
            return Chunk(layout[:i], Std.SECOND, layout[i + 1 :])
        elif c == "P" and rest.startswith("PM"):
            return Chunk(layout[:i], Std.PM, layout[i + 2 :])
        elif c == "p" and rest.startswith("pm"):
            return Chunk(layout[:i], Std.LOWER_PM, layout[i + 2 :])
        elif c == "-":
            for spelling, std in _NUM_TZ:
                if rest.startswith(spelling):
                    return Chunk(layout[:i], std, layout[i + len(spelling) :])
        elif c == "Z":
            for spelling, std in _ISO_TZ:
                if rest.startswith(spelling):
                    return Chunk(layout[:i], std, layout[i + len(spelling) :])
        elif c in ".," and i + 1 < n and layout[i + 1] in "09":
            digit = layout[i + 1]
            j = i + 1
            while j < n and layout[j] == digit:
                j += 1
            # Only a fractional second if the run of digits ends here.
            if not _is_digit(layout, j):
                std = Std.FRAC_SECOND0 if digit == "0" else Std.FRAC_SECOND9
                return Chunk(layout[:i], std, layout[j:], digits=j - (i + 1))
    return Chunk(layout, None, "")


def tokenize(layout: str) -> list[Chunk]:
    """Split a layout into its literal/element chunks."""
    chunks = []
    while True:
        chunk = next_chunk(layout)
        chunks.append(chunk)
        if chunk.std is None:
            return chunks
        layout = chunk.suffix


class TimeParseError(ValueError):
    """Mirrors Go's ``*time.ParseError``."""

    def __init__(
        self,
        layout: str,
        value: str,
        layout_elem: str,
        value_elem: str,
        message: str = "",
    ):
        self.layout = layout
        self.value = value
        self.layout_elem = layout_elem
        self.value_elem = value_elem
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.message:
            return (
                f"parsing time {_quote(self.value)} as {_quote(self.layout)}: "
                f"cannot parse {_quote(self.value_elem)} as {_quote(self.layout_elem)}"
            )
        return f"parsing time {_quote(self.value)}{self.message}"


@dataclass(frozen=True)
class ParsedTime:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    nanosecond: int
    zone_offset: int | None = None  # seconds east of UTC
    zone_name: str = ""


class _Bad(Exception):
    """Internal: the value does not match the current element."""


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _getnum(s: str, fixed: bool) -> tuple[int, str]:
    if not _is_digit(s, 0):
        raise _Bad
    if not _is_digit(s, 1):
        if fixed:
            raise _Bad
        return int(s[0]), s[1:]
    return int(s[:2]), s[2:]


def _getnum3(s: str, fixed: bool) -> tuple[int, str]:
    n = 0
    i = 0
    while i < 3 and _is_digit(s, i):
        n = n * 10 + int(s[i])
        i += 1
    if i == 0 or (fixed and i != 3):
        raise _Bad
    return n, s[i:]


def _atoi(s: str) -> int:
    neg = False
    if s and s[0] in "+-":
        neg = s[0] == "-"
        s = s[1:]
    if not s or not s.isascii() or not s.isdigit():
        raise _Bad
    n = int(s)
    return -n if neg else n


def _lookup(table: tuple[str, ...], value: str) -> tuple[int, str]:
    for i, name in enumerate(table):
        if len(value) >= len(name) and value[: len(name)].lower() == name.lower():
            return i, value[len(name) :]
    raise _Bad


def _cutspace(s: str) -> str:
    return s.lstrip(" ")


def _skip(value: str, prefix: str) -> tuple[str, bool]:
    """Consume the literal ``prefix`` from ``value``; spaces match loosely.

    Returns the remaining value and whether the whole prefix matched.
    """
    while prefix:
        if prefix[0] == " ":
            if value and value[0] != " ":
                return value, False
            prefix = _cutspace(prefix)
            value = _cutspace(value)
            continue
        if not value or value[0] != prefix[0]:
            return value, False
        prefix = prefix[1:]
        value = value[1:]
    return value, True


def _signed_offset_len(value: str) -> int:
    if not value or value[0] not in "+-":
        return 0
    i = 1
    while _is_digit(value, i):
        i += 1
    if i == 1 or int(value[1:i]) > 23:
        return 0
    return i


def _timezone_len(value: str) -> int:
    """Length of a zone abbreviation at the start of ``value`` (0 if none)."""
    if len(value) < 3:
        return 0
    if value[:4] in ("ChST", "MeST"):
        return 4
    if value[:3] == "GMT":
        return 3 + _signed_offset_len(value[3:])
    if value[0] in "+-":
        return _signed_offset_len(value)
    upper = 0
    while upper < 6 and upper < len(value) and "A" <= value[upper] <= "Z":
        upper += 1
    if upper == 3:
        return 3
    if upper == 4 and (value[3] == "T" or value[:4] == "WITA"):
        return 4
    if upper == 5 and value[4] == "T":
        return 5
    return 0


def _nanoseconds(value: str, nbytes: int) -> tuple[int, str]:
    """Parse ``.ddd`` of ``nbytes`` characters; returns (ns, range error)."""
    if value[0] not in ".,":
        raise _Bad
    if nbytes > 10:
        value = value[:10]
        nbytes = 10
    ns = _atoi(value[1:nbytes])
    if ns < 0:
        return 0, "fractional second"
    return ns * 10 ** (10 - nbytes), ""


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in(month: int, year: int) -> int:
    if month == 2 and is_leap(year):
        return 29
    return _DAYS_BEFORE[month] - _DAYS_BEFORE[month - 1]


def parse(layout: str, value: str) -> ParsedTime:
    """Parse ``value`` according to the Go reference-time ``layout``.

    Raises:
        TimeParseError: With Go's error text when the value does not match.
    """
    alayout, avalue = layout, value
    year = 0
    month = day = yday = -1
    hour = minute = second = nsec = 0
    pm_set = am_set = False
    zone_offset: int | None = None
    zone_name = ""

    while True:
        chunk = next_chunk(layout)
        std_text = layout[len(chunk.prefix) : len(layout) - len(chunk.suffix)]
        value, matched = _skip(value, chunk.prefix)
        if not matched:
            raise TimeParseError(alayout, avalue, chunk.prefix, value)
        if chunk.std is None:
            if value:
                raise TimeParseError(
                    alayout, avalue, "", value, f": extra text: {_quote(value)}"
                )
            break
        layout = chunk.suffix
        std = chunk.std
        hold = value
        range_err = ""
        try:
            if std is Std.YEAR:
                if len(value) < 2:
                    raise _Bad
                year = _atoi(value[:2])
                value = value[2:]
                year += 1900 if year >= 69 else 2000
            elif std is Std.LONG_YEAR:
                if len(value) < 4 or not _is_digit(value, 0):
                    raise _Bad
                year = _atoi(value[:4])
                value = value[4:]
            elif std is Std.MONTH:
                month, value = _lookup(SHORT_MONTH_NAMES, value)
                month += 1
            elif std is Std.LONG_MONTH:
                month, value = _lookup(LONG_MONTH_NAMES, value)
                month += 1
            elif std in (Std.NUM_MONTH, Std.ZERO_MONTH):
                month, value = _getnum(value, std is Std.ZERO_MONTH)
                if month <= 0 or month > 12:
                    range_err = "month"
            elif std is Std.WEEKDAY:
                _, value = _lookup(SHORT_DAY_NAMES, value)
            elif std is Std.LONG_WEEKDAY:
                _, value = _lookup(LONG_DAY_NAMES, value)
            elif std in (Std.DAY, Std.UNDER_DAY, Std.ZERO_DAY):
                if std is Std.UNDER_DAY and value[:1] == " ":
                    value = value[1:]
                # Any one- or two-digit day; validated against the month below.
                day, value = _getnum(value, std is Std.ZERO_DAY)
            elif std in (Std.UNDER_YEARDAY, Std.ZERO_YEARDAY):
                for _ in range(2):
                    if std is Std.UNDER_YEARDAY and value[:1] == " ":
                        value = value[1:]
                yday, value = _getnum3(value, std is Std.ZERO_YEARDAY)
            elif std is Std.HOUR:
                hour, value = _getnum(value, False)
                if hour < 0 or hour >= 24:
                    range_err = "hour"
            elif std in (Std.HOUR12, Std.ZERO_HOUR12):
                hour, value = _getnum(value, std is Std.ZERO_HOUR12)
                if hour < 0 or hour > 12:
                    range_err = "hour"
            elif std in (Std.MINUTE, Std.ZERO_MINUTE):
                minute, value = _getnum(value, std is Std.ZERO_MINUTE)
                if minute < 0 or minute >= 60:
                    range_err = "minute"
            elif std in (Std.SECOND, Std.ZERO_SECOND):
                second, value = _getnum(value, std is Std.ZERO_SECOND)
                if second < 0 or second >= 60:
                    range_err = "second"
                elif len(value) >= 2 and value[0] in ".," and _is_digit(value, 1):
                    # A fractional second in the value that the layout
                    # does not spell out is accepted here.
                    following = next_chunk(layout).std
                    if following not in (Std.FRAC_SECOND0, Std.FRAC_SECOND9):
                        n = 2
                        while _is_digit(value, n):
                            n += 1
                        nsec, range_err = _nanoseconds(value, n)
                        value = value[n:]
            elif std is Std.PM:
                if len(value) < 2:
                    raise _Bad
                p, value = value[:2], value[2:]
                if p == "PM":
                    pm_set = True
                elif p == "AM":
                    am_set = True
                else:
                    raise _Bad
            elif std is Std.LOWER_PM:
                if len(value) < 2:
                    raise _Bad
                p, value = value[:2], value[2:]
                if p == "pm":
                    pm_set = True
                elif p == "am":
                    am_set = True
                else:
                    raise _Bad
            elif std in _ISO_STDS and value[:1] == "Z":
                value = value[1:]
                zone_offset = 0
                zone_name = "UTC"
            elif std in _ISO_STDS or std in _NUM_STDS:
                zone_offset, value, range_err = _parse_offset(std, value)
            elif std is Std.TZ:
                if value[:3] == "UTC":
                    zone_name = "UTC"
                    value = value[3:]
                else:
                    n = _timezone_len(value)
                    if n == 0:
                        raise _Bad
                    zone_name, value = value[:n], value[n:]
            elif std is Std.FRAC_SECOND0:
                # Requires exactly as many digits as the layout shows.
                ndigit = 1 + chunk.digits
                if len(value) < ndigit:
                    raise _Bad
                nsec, range_err = _nanoseconds(value, ndigit)
                value = value[ndigit:]
            elif std is Std.FRAC_SECOND9:
                if len(value) >= 2 and value[0] in ".," and _is_digit(value, 1):
                    # Take any number of digits, even more than asked for.
                    i = 0
                    while _is_digit(value, i + 1):
                        i += 1
                    nsec, range_err = _nanoseconds(value, 1 + i)
                    value = value[1 + i :]
        except _Bad:
            raise TimeParseError(alayout, avalue, std_text, hold) from None
        if range_err:
            raise TimeParseError(
                alayout, avalue, std_text, value, f": {range_err} out of range"
            )

    if pm_set and hour < 12:
        hour += 12
    elif am_set and hour == 12:
        hour = 0

    if yday >= 0:
        d = m = 0
        if is_leap(year):
            if yday == 31 + 29:
                m, d = 2, 29
            elif yday > 31 + 29:
                yday -= 1
        if yday < 1 or yday > 365:
            raise TimeParseError(alayout, avalue, "", value, ": day-of-year out of range")
        if m == 0:
            m = (yday - 1) // 31 + 1
            if _DAYS_BEFORE[m] < yday:
                m += 1
            d = yday - _DAYS_BEFORE[m - 1]
        if month >= 0 and month != m:
            raise TimeParseError(
                alayout, avalue, "", value, ": day-of-year does not match month"
            )
        month = m
        if day >= 0 and day != d:
            raise TimeParseError(
                alayout, avalue, "", value, ": day-of-year does not match day"
            )
        day = d
    else:
        if month < 0:
            month = 1
        if day < 0:
            day = 1

    if day < 1 or day > days_in(month, year):
        raise TimeParseError(alayout, avalue, "", value, ": day out of range")

    return ParsedTime(
        year=year,
        month=month,
        day=day,
        hour=hour,
        minute=minute,
        second=second,
        nanosecond=nsec,
        zone_offset=zone_offset,
        zone_name=zone_name,
    )


_ISO_STDS = frozenset(std for _, std in _ISO_TZ)
_NUM_STDS = frozenset(std for _, std in _NUM_TZ)


def _parse_offset(std: Std, value: str) -> tuple[int, str, str]:
    """Parse a numeric zone offset; returns (seconds east, rest, range error)."""
    if std in (Std.ISO8601_COLON_TZ, Std.NUM_COLON_TZ):
        if len(value) < 6 or value[3] != ":":
            raise _Bad
        sign, hh, mm, ss, value = value[0], value[1:3], value[4:6], "00", value[6:]
    elif std in (Std.NUM_SHORT_TZ, Std.ISO8601_SHORT_TZ):
        if len(value) < 3:
            raise _Bad
        sign, hh, mm, ss, value = value[0], value[1:3], "00", "00", value[3:]
    elif std in (Std.ISO8601_COLON_SECONDS_TZ, Std.NUM_COLON_SECONDS_TZ):
        if len(value) < 9 or value[3] != ":" or value[6] != ":":
            raise _Bad
        sign, hh, mm, ss, value = value[0], value[1:3], value[4:6], value[7:9], value[9:]
    elif std in (Std.ISO8601_SECONDS_TZ, Std.NUM_SECONDS_TZ):
        if len(value) < 7:
            raise _Bad
        sign, hh, mm, ss, value = value[0], value[1:3], value[3:5], value[5:7], value[7:]
    else:
        if len(value) < 5:
            raise _Bad
        sign, hh, mm, ss, value = value[0], value[1:3], value[3:5], "00", value[5:]

    hr, _ = _getnum(hh, True)
    mi, _ = _getnum(mm, True)
    se, _ = _getnum(ss, True)

    # Offsets of exactly 24h, 60m or 60s occur in the wild and are accepted.
    range_err = ""
    if hr > 24:
        range_err = "time zone offset hour"
    if mi > 60:
        range_err = "time zone offset minute"
    if se > 60:
        range_err = "time zone offset second"

    offset = (hr * 60 + mi) * 60 + se
    if sign == "-":
        offset = -offset
    elif sign != "+" and not range_err:
        raise _Bad
    return offset, value, range_err


def validate_layout(layout: str) -> None:
    """Check that ``layout`` parses itself after normalization.

    Underscores become spaces (``_2`` pads with a space) and ``Z`` becomes
    ``-`` (``Z07:00`` then reads as a numeric offset), so a well-formed
    layout always matches its own text.

    Raises:
        TimeParseError: If the normalized layout fails to parse itself.
    """
    normalized = layout.replace("_", " ").replace("Z", "-")
    parse(normalized, normalized)
