"""Value formatter used to turn raw row values into displayable cell values.

A format is either a name (``"raw"``, ``"text"``, ``"decimal"``) or a list
whose first item is the name and whose remaining items are arguments for
that format (``["date", "%d.%m.%Y"]``, ``["decimal", 3]``).

Usage:
    from restgrid.formatter import Formatter

    formatter = Formatter(thousand_separator=" ")
    formatter.format(1234.5, ["decimal", 1])  # "1 234.5"
    formatter.format("<b>x</b>", "text")  # "&lt;b&gt;x&lt;/b&gt;"
"""

from __future__ import annotations

import html
import math

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .config import FormatterSettings, get_settings
from .exceptions import InvalidArgumentError, InvalidConfigError


# (abbreviation, long name) per power of the size base
_SIZE_UNITS_1024 = (
    ("B", "bytes"),
    ("KiB", "kibibytes"),
    ("MiB", "mebibytes"),
    ("GiB", "gibibytes"),
    ("TiB", "tebibytes"),
    ("PiB", "pebibytes"),
)
_SIZE_UNITS_1000 = (
    ("B", "bytes"),
    ("kB", "kilobytes"),
    ("MB", "megabytes"),
    ("GB", "gigabytes"),
    ("TB", "terabytes"),
    ("PB", "petabytes"),
)


class Formatter(BaseModel):
    """Formats raw values according to a format name.

    Every format is implemented by an ``as_<name>`` method, so subclasses
    add formats by adding methods. ``None`` is rendered as
    :attr:`null_display` regardless of the format.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    null_display: str | None = None
    boolean_format: list[str] = Field(default_factory=lambda: ["No", "Yes"], min_length=2, max_length=2)
    date_format: str = "%Y-%m-%d"
    datetime_format: str = "%Y-%m-%d %H:%M:%S"
    time_format: str = "%H:%M:%S"
    decimal_separator: str = "."
    thousand_separator: str = ","
    currency_code: str = "USD"
    size_format_base: Literal[1000, 1024] = 1024

    @classmethod
    def from_settings(cls, settings: FormatterSettings) -> Formatter:
        """Build a formatter from the formatter section of the settings."""
        return cls(**settings.model_dump())

    def format(self, value: Any, fmt: str | list[Any] | tuple[Any, ...] = "raw") -> Any:
        """Format a value.

        Parameters
        ----------
        value : Any
            The raw value.
        fmt : str or list
            Format name, or ``[name, *args]``.

        Returns
        -------
        Any
            The formatted value.

        Raises
        ------
        InvalidConfigError
            If the format is empty or names no ``as_<name>`` method.
        """
        if isinstance(fmt, (list, tuple)):
            if not fmt:
                raise InvalidConfigError("The format list must not be empty.", attribute="format")
            name, args = fmt[0], list(fmt[1:])
        else:
            name, args = fmt, []

        method = getattr(self, f"as_{str(name).lower()}", None) if name else None
        if not callable(method):
            raise InvalidConfigError(f"Unknown format type: {name!r}", attribute="format")
        return method(value, *args)

    # --- Plain ---

    def as_raw(self, value: Any) -> Any:
        """Return the value unchanged (``None`` becomes null_display)."""
        if value is None:
            return self.null_display
        return value

    def as_text(self, value: Any) -> str | None:
        """HTML-escape the string form of the value."""
        if value is None:
            return self.null_display
        return html.escape(str(value))

    def as_ntext(self, value: Any) -> str | None:
        """HTML-escape the value and turn newlines into ``<br>``."""
        if value is None:
            return self.null_display
        return html.escape(str(value)).replace("\r\n", "\n").replace("\n", "<br>\n")

    def as_html(self, value: Any) -> str | None:
        """Return the value as trusted HTML markup."""
        if value is None:
            return self.null_display
        return str(value)

    def as_email(self, value: Any) -> str | None:
        """Render a ``mailto:`` link."""
        if value is None:
            return self.null_display
        address = html.escape(str(value))
        return f'<a href="mailto:{address}">{address}</a>'

    def as_url(self, value: Any) -> str | None:
        """Render a link, adding ``http://`` when the value has no scheme."""
        if value is None:
            return self.null_display
        url = str(value)
        href = url if "://" in url else f"http://{url}"
        return f'<a href="{html.escape(href)}">{html.escape(url)}</a>'

    def as_boolean(self, value: Any) -> str | None:
        """Render a truthy value as the second boolean label, else the first."""
        if value is None:
            return self.null_display
        return self.boolean_format[1] if value else self.boolean_format[0]

    # --- Numbers ---

    def _to_number(self, value: Any) -> Decimal:
        if isinstance(value, bool):
            return Decimal(int(value))
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                raise InvalidArgumentError(f"'{value}' is not a finite number.", argument="value")
            return Decimal(repr(value))
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidArgumentError(f"'{value}' is not a numeric value.", argument="value") from exc

    def _group(self, text: str) -> str:
        """Swap Python's ``,``/``.`` for the configured separators."""
        return (
            text.replace(",", "\x00")
            .replace(".", self.decimal_separator)
            .replace("\x00", self.thousand_separator)
        )

    def as_integer(self, value: Any) -> str | None:
        """Render the integer part of a number with thousand grouping."""
        if value is None:
            return self.null_display
        number = int(self._to_number(value))
        return self._group(f"{number:,d}")

    def as_decimal(self, value: Any, decimals: int = 2) -> str | None:
        """Render a number with a fixed count of decimals and thousand grouping."""
        if value is None:
            return self.null_display
        number = self._to_number(value)
        return self._group(f"{number:,.{int(decimals)}f}")

    def as_percent(self, value: Any, decimals: int = 0) -> str | None:
        """Render a ratio as a percentage (``0.25`` becomes ``"25%"``)."""
        if value is None:
            return self.null_display
        number = self._to_number(value) * 100
        return self._group(f"{number:,.{int(decimals)}f}") + "%"

    def as_scientific(self, value: Any, decimals: int = 2) -> str | None:
        """Render a number in exponent notation."""
        if value is None:
            return self.null_display
        number = self._to_number(value)
        return f"{number:.{int(decimals)}E}".replace(".", self.decimal_separator)

    def as_currency(self, value: Any, currency: str | None = None, decimals: int = 2) -> str | None:
        """Render an amount prefixed with its currency code."""
        if value is None:
            return self.null_display
        return f"{currency or self.currency_code} {self.as_decimal(value, decimals)}"

    def _size(self, value: Any, decimals: int | None, short: bool) -> str | None:
        if value is None:
            return self.null_display
        number = float(self._to_number(value))
        base = self.size_format_base
        units = _SIZE_UNITS_1024 if base == 1024 else _SIZE_UNITS_1000
        position = 0
        while abs(number) >= base and position < len(units) - 1:
            number /= base
            position += 1
        places = (0 if position == 0 else 1) if decimals is None else int(decimals)
        text = self._group(f"{number:,.{places}f}")
        return f"{text} {units[position][0 if short else 1]}"

    def as_size(self, value: Any, decimals: int | None = None) -> str | None:
        """Render a byte count with a long unit name (``"1.5 kibibytes"``)."""
        return self._size(value, decimals, short=False)

    def as_short_size(self, value: Any, decimals: int | None = None) -> str | None:
        """Render a byte count with a unit abbreviation (``"1.5 KiB"``)."""
        return self._size(value, decimals, short=True)

    # --- Dates ---

    def _to_datetime(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, time):
            return datetime.combine(date(1970, 1, 1), value)
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        if isinstance(value, str):
            text = value.strip()
            if text.lstrip("-").isdigit():
                return datetime.fromtimestamp(int(text), tz=timezone.utc)
            try:
                return datetime.fromisoformat(text)
            except ValueError as exc:
                raise InvalidArgumentError(
                    f"'{value}' is not a valid date time value.", argument="value"
                ) from exc
        raise InvalidArgumentError(
            f"Values of type {type(value).__name__} cannot be formatted as dates.",
            argument="value",
        )

    def as_date(self, value: Any, pattern: str | None = None) -> str | None:
        """Render the date part of a date, datetime, ISO string or unix timestamp."""
        if value is None:
            return self.null_display
        return self._to_datetime(value).strftime(pattern or self.date_format)

    def as_datetime(self, value: Any, pattern: str | None = None) -> str | None:
        """Render a date and time."""
        if value is None:
            return self.null_display
        return self._to_datetime(value).strftime(pattern or self.datetime_format)

    def as_time(self, value: Any, pattern: str | None = None) -> str | None:
        """Render the time of day."""
        if value is None:
            return self.null_display
        return self._to_datetime(value).strftime(pattern or self.time_format)

    def as_timestamp(self, value: Any) -> int | str | None:
        """Render a unix timestamp (naive values are taken as UTC)."""
        if value is None:
            return self.null_display
        moment = self._to_datetime(value)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int(moment.timestamp())


@lru_cache(maxsize=1)
def get_formatter() -> Formatter:
    """Get the default formatter built from the current settings (cached).

    Cleared by :func:`restgrid.config.clear_settings` and ``reload_settings``.
    """
    return Formatter.from_settings(get_settings().formatter)
