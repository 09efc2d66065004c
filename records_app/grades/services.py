import logging
from sqlalchemy import select
from .. import db, cache
from ..models import GradeScale
from ..repository import find_grade_bands
from .resolver import DEFAULT_GRADE_SCALE, overlapping_bands, resolve, validate_band

logger = logging.getLogger(__name__)


@cache.memoize()
def _cached_bands():
    return tuple(find_grade_bands(active_only=True))


def active_grade_bands():
    """
    Active bands, memoized. Call invalidate_grade_bands() after any write.
    """
    return list(_cached_bands())


def invalidate_grade_bands():
    cache.delete_memoized(_cached_bands)


def resolve_grade(percentage):
    return resolve(percentage, active_grade_bands())


def seed_grade_scales(bands=DEFAULT_GRADE_SCALE):
    """
    Upserts grade bands by code.
    Returns: (created: int, updated: int)
    """
    created = 0
    updated = 0
    for band in bands:
        validate_band(band)

    try:
        for band in bands:
            row = db.session.execute(select(GradeScale).filter_by(code=band.code)).scalars().first()
            if not row:
                row = GradeScale(code=band.code)
                db.session.add(row)
                created += 1
            else:
                updated += 1
            row.grade_name = band.name
            row.lower_limit = band.lower_limit
            row.upper_limit = band.upper_limit
            row.grade_points = band.grade_points
            row.description = band.description
            row.is_active = band.is_active
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Seeding grade scales failed")
        raise
    finally:
        invalidate_grade_bands()

    overlaps = overlapping_bands(bands)
    if overlaps:
        logger.warning("Grade bands overlap, highest upper limit wins: %s", overlaps)
    logger.info("Grade scales seeded: %s created, %s updated", created, updated)
    return created, updated
