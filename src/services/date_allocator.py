import logging
import re
from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from src.models.response_models import DestinationDateRange
from src.utils.config import get_settings
from src.utils.formatters import MONTH_ABBREVIATIONS, ResponseFormatter

# "Jun 1 - Jun 10, 2024"; full month names and a missing year are tolerated
_TRIP_DATES_PATTERN = re.compile(
    r"^\s*([A-Za-z]{3})[A-Za-z]*\.?\s+(\d{1,2})\s*-\s*([A-Za-z]{3})[A-Za-z]*\.?\s+(\d{1,2})\s*(?:,\s*(\d{4}))?\s*$"
)
_MONTHS = {abbr.lower(): index + 1 for index, abbr in enumerate(MONTH_ABBREVIATIONS)}


class DateRangeParseError(ValueError):
    """Raised when a trip's date string cannot be parsed"""


class DestinationDateAllocator:
    """
    Split a trip's overall date range across its destinations.

    Every destination receives ``total // count`` days and the first
    ``total % count`` destinations one extra, so allocations always add up to the
    trip's day count. Ranges are contiguous and in destination order.
    """

    def __init__(self, strict: Optional[bool] = None, today: Callable[[], date] = date.today):
        self.strict = strict
        self.today = today
        self.logger = logging.getLogger(__name__)

    def parse_trip_dates(self, dates: str) -> Tuple[date, date]:
        """Parse "<Mon> <D> - <Mon> <D>, <YYYY>" into start and end dates.

        Both dates take the end date's year. When the end date lands before the
        start date the trip is assumed to cross New Year.
        """
        match = _TRIP_DATES_PATTERN.match(dates or "")
        if not match:
            raise DateRangeParseError(f"Unrecognized trip dates: {dates!r}")

        start_month_name, start_day, end_month_name, end_day, year = match.groups()
        start_month = _MONTHS.get(start_month_name.lower())
        end_month = _MONTHS.get(end_month_name.lower())
        if start_month is None or end_month is None:
            raise DateRangeParseError(f"Unknown month in trip dates: {dates!r}")

        end_year = int(year) if year else self.today().year
        try:
            end_date = date(end_year, end_month, int(end_day))
            start_date = date(end_year, start_month, int(start_day))
            if start_date > end_date:
                start_date = date(end_year - 1, start_month, int(start_day))
        except ValueError as e:
            raise DateRangeParseError(f"Invalid calendar date in {dates!r}: {e}") from e

        return start_date, end_date

    def allocate(self, start_date: date, end_date: date, destination_count: int) -> List[DestinationDateRange]:
        """Allocate the inclusive span [start_date, end_date] across destinations"""
        if destination_count <= 0:
            return []

        total_days = (end_date - start_date).days + 1
        if total_days < 1:
            raise DateRangeParseError(f"End date {end_date} is before start date {start_date}")

        base_days = total_days // destination_count
        extra_days = total_days % destination_count

        ranges: List[DestinationDateRange] = []
        cursor = start_date
        for index in range(destination_count):
            days = base_days + (1 if index < extra_days else 0)
            # Zero-day destinations (more destinations than days) sit on the cursor
            range_end = cursor + timedelta(days=days - 1) if days > 0 else cursor
            ranges.append(DestinationDateRange(
                start_date=cursor,
                end_date=range_end,
                days=days,
                label=ResponseFormatter.format_date_range(cursor, days)
            ))
            cursor = cursor + timedelta(days=days)

        return ranges

    def get_destination_date_ranges(self, dates: str, destination_count: int,
                                    strict: Optional[bool] = None) -> List[DestinationDateRange]:
        """Parse the trip's date string and allocate it across destinations.

        Unparseable dates fall back to one day per destination on today's date,
        unless strict mode is on, in which case DateRangeParseError propagates.
        """
        if strict is None:
            strict = self.strict if self.strict is not None else get_settings().SMART_ROUTE_STRICT_DATES

        try:
            start_date, end_date = self.parse_trip_dates(dates)
            return self.allocate(start_date, end_date, destination_count)
        except DateRangeParseError as e:
            if strict:
                raise
            self.logger.warning(
                "Trip dates could not be parsed; falling back to one day per destination",
                extra={"dates": dates, "destination_count": destination_count, "error": str(e)}
            )
            return self.fallback_ranges(destination_count)

    def fallback_ranges(self, destination_count: int) -> List[DestinationDateRange]:
        today = self.today()
        return [
            DestinationDateRange(start_date=today, end_date=today, days=1, label=f"Day {index + 1}")
            for index in range(max(destination_count, 0))
        ]

    @staticmethod
    def individual_day_dates(destination_range: DestinationDateRange) -> List[str]:
        """One "Mon D" label per allocated day"""
        return [
            ResponseFormatter.format_short_date(destination_range.start_date + timedelta(days=offset))
            for offset in range(destination_range.days)
        ]

    @staticmethod
    def total_days(ranges: List[DestinationDateRange]) -> int:
        return sum(r.days for r in ranges)
