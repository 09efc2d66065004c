from ..errors import InvalidGradeBand, NoMatchingGradeBand, PercentageOutOfRange
from ..records import GradeBand

# Default Indian 10-point scale
DEFAULT_GRADE_SCALE = (
    GradeBand("O", "Outstanding", 90, 100, 10, "Excellent performance"),
    GradeBand("A+", "Excellent", 80, 89.99, 9, "Very good performance"),
    GradeBand("A", "Very Good", 70, 79.99, 8, "Good performance"),
    GradeBand("B+", "Good", 60, 69.99, 7, "Above average performance"),
    GradeBand("B", "Average", 50, 59.99, 6, "Average performance"),
    GradeBand("C", "Satisfactory", 45, 49.99, 5, "Below average performance"),
    GradeBand("P", "Pass", 40, 44.99, 4, "Minimum passing performance"),
    GradeBand("F", "Fail", 0, 39.99, 0, "Failed to meet minimum criteria"),
    GradeBand("AB", "Absent", 0, 0, 0, "Student was absent"),
    GradeBand("I", "Incomplete", 0, 0, 0, "Course requirements not completed"),
)


def validate_band(band):
    """Raises InvalidGradeBand when a band cannot be used for lookups."""
    problems = []
    if not (0 <= band.lower_limit <= 100) or not (0 <= band.upper_limit <= 100):
        problems.append("limits must be between 0 and 100")
    if band.lower_limit > band.upper_limit:
        problems.append("lower limit exceeds upper limit")
    if not (0 <= band.grade_points <= 10):
        problems.append("grade points must be between 0 and 10")
    if problems:
        raise InvalidGradeBand(
            f"Grade band {band.code} is invalid: {'; '.join(problems)}.",
            entity="GradeBand",
            entity_id=band.code,
        )
    return band


def overlapping_bands(bands):
    """
    Returns (code, code) pairs of active bands whose ranges intersect.
    """
    active = sorted((b for b in bands if b.is_active), key=lambda b: (b.lower_limit, b.upper_limit, b.code))
    pairs = []
    for i, a in enumerate(active):
        for b in active[i + 1:]:
            if b.lower_limit > a.upper_limit:
                break
            pairs.append((a.code, b.code))
    return pairs


def _precedence(band):
    # Highest upper limit wins, then highest lower limit, then code
    return (-band.upper_limit, -band.lower_limit, band.code)


def resolve(percentage, bands):
    """
    Selects the grade band covering ``percentage``.

    When several active bands cover the value (overlapping configuration) the
    band with the highest upper limit is chosen. No silent default: an
    uncovered percentage raises NoMatchingGradeBand.
    """
    if percentage is None or not (0 <= percentage <= 100):
        raise PercentageOutOfRange(
            f"Percentage {percentage} is outside 0-100.",
            entity="GradeBand",
            percentage=percentage,
        )
    matches = [b for b in bands if b.is_active and b.covers(percentage)]
    if not matches:
        raise NoMatchingGradeBand(
            f"No grade band covers {percentage:.2f}%.",
            entity="GradeBand",
            percentage=percentage,
        )
    return min(matches, key=_precedence)


def band_by_code(code, bands):
    for band in bands:
        if band.code == code and band.is_active:
            return band
    return None
