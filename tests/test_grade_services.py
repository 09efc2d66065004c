import pytest
from sqlalchemy import update

from records_app import db
from records_app.errors import NoMatchingGradeBand
from records_app.grades import services
from records_app.models import GradeScale


def test_seed_is_an_upsert(ctx):
    assert services.seed_grade_scales() == (10, 0)
    assert services.seed_grade_scales() == (0, 10)
    assert db.session.query(GradeScale).count() == 10


def test_resolve_grade_uses_cached_bands(ctx):
    services.seed_grade_scales()
    assert services.resolve_grade(85).code == "A+"

    db.session.execute(update(GradeScale).where(GradeScale.code == "O").values(is_active=False))
    db.session.commit()
    # Still served from cache until invalidated
    assert services.resolve_grade(95).code == "O"

    services.invalidate_grade_bands()
    with pytest.raises(NoMatchingGradeBand):
        services.resolve_grade(95)
