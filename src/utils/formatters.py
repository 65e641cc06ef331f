from typing import List, Optional
from datetime import date

MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

class ResponseFormatter:
    """Format values for display in itinerary responses"""

    @staticmethod
    def format_number(value: float) -> str:
        """Render whole numbers without a decimal part (3.0 -> "3", 4.5 -> "4.5")"""
        if float(value).is_integer():
            return str(int(value))
        return f"{value:g}"

    @staticmethod
    def format_hours(hours: float) -> str:
        """Format an hour count, e.g. "3 hours" or "4.5 hours" """
        text = ResponseFormatter.format_number(hours)
        return f"{text} hour" if text == "1" else f"{text} hours"

    @staticmethod
    def format_minutes(minutes: float) -> str:
        text = ResponseFormatter.format_number(minutes)
        return f"{text} minute" if text == "1" else f"{text} minutes"

    @staticmethod
    def format_short_date(value: date) -> str:
        """Format a date as "Jun 1" """
        return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}"

    @staticmethod
    def format_date_range(start_date: date, days: int) -> str:
        """Label for a destination's allocation: "Jun 1" or "Jun 1 - Jun 4" """
        start_label = ResponseFormatter.format_short_date(start_date)
        if days <= 0:
            return f"{start_label} (no days)"
        if days == 1:
            return start_label
        end_date = date.fromordinal(start_date.toordinal() + days - 1)
        return f"{start_label} - {ResponseFormatter.format_short_date(end_date)}"

    @staticmethod
    def format_clock(hour: int) -> str:
        """Format an hour of the day on a 12-hour clock (13 -> "1:00 PM")"""
        hour = hour % 24
        suffix = "AM" if hour < 12 else "PM"
        display = hour % 12 or 12
        return f"{display}:00 {suffix}"

    @staticmethod
    def format_trip_duration(days: int) -> str:
        return f"{days} day" if days == 1 else f"{days} days"

    @staticmethod
    def format_distance(distance_m: float) -> str:
        """Format a distance given in meters"""
        if distance_m < 1000:
            return f"{int(round(distance_m))}m"
        distance_km = distance_m / 1000
        if distance_km < 10:
            return f"{distance_km:.1f}km"
        return f"{distance_km:.0f}km"

    @staticmethod
    def format_confidence(confidence: float) -> str:
        return f"{confidence * 100:.0f}%"

class DurationFormatter:
    """Split free-text visit durations such as "2-3 hours" into their bounds"""

    @staticmethod
    def _split(estimated_time: str) -> List[str]:
        return [part.strip() for part in (estimated_time or "").split('-')]

    @staticmethod
    def _unit_of(text: str) -> Optional[str]:
        parts = text.split(None, 1)
        if len(parts) == 2 and not parts[1][:1].isdigit():
            return parts[1]
        return None

    @staticmethod
    def lower_bound(estimated_time: str) -> str:
        """Lower bound of a range, e.g. "2-3 hours" becomes "2 hours"."""
        parts = DurationFormatter._split(estimated_time)
        if len(parts) < 2 or not parts[0]:
            return (estimated_time or "").strip()
        lower = parts[0]
        if DurationFormatter._unit_of(lower) is None:
            unit = DurationFormatter._unit_of(parts[1])
            if unit:
                # "1-2 hours" -> "1 hour"
                if lower == "1" and unit.endswith("s"):
                    unit = unit[:-1]
                return f"{lower} {unit}"
        return lower

    @staticmethod
    def upper_bound(estimated_time: str) -> str:
        """Upper bound of a range, e.g. "2-3 hours" becomes "3 hours"."""
        parts = DurationFormatter._split(estimated_time)
        if len(parts) < 2 or not parts[1]:
            return (estimated_time or "").strip()
        return parts[1]

