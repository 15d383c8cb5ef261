import pytest

from taxigeo.core.models import Provenance, QualityTier
from taxigeo.core.quality import QualityGrader, grade

STREET = "Av. México 123, Centro, 63000 Tepic, Nayarit, México"


@pytest.mark.parametrize(
    "score, tier, meters",
    [
        (10, QualityTier.EXCELLENT, 10),
        (9, QualityTier.EXCELLENT, 10),
        (8, QualityTier.GOOD, 30),
        (7, QualityTier.GOOD, 30),
        (5, QualityTier.ACCEPTABLE, 150),
        (4, QualityTier.ACCEPTABLE, 150),
        (3, QualityTier.LOW, 600),
        (0, QualityTier.LOW, 600),
    ],
)
def test_opencage_buckets(score, tier, meters):
    assessment = grade(Provenance.PROVIDER_A, score, STREET, "Av México 123")
    assert assessment.tier is tier
    assert assessment.precision_meters == meters


@pytest.mark.parametrize(
    "score, tier",
    [(0.95, QualityTier.EXCELLENT), (0.9, QualityTier.EXCELLENT), (0.75, QualityTier.GOOD),
     (0.5, QualityTier.ACCEPTABLE), (0.2, QualityTier.LOW)],
)
def test_mapbox_buckets(score, tier):
    assert grade(Provenance.PROVIDER_B, score, STREET, "Av México 123").tier is tier


def test_reverse_uses_opencage_thresholds():
    assert grade(Provenance.REVERSE_PROVIDER_A, 9, STREET, "21.5,-104.9").tier is QualityTier.EXCELLENT


def test_gazetteer_is_always_excellent():
    assessment = grade(Provenance.GAZETTEER, 10, "Nayarit, México", "Tepic 123")
    assert assessment.tier is QualityTier.EXCELLENT
    assert assessment.precision_meters == 5


def test_missing_score_is_unknown():
    assessment = grade(Provenance.PROVIDER_A, None, STREET, "x")
    assert assessment.tier is QualityTier.UNKNOWN
    assert assessment.precision_meters == 999


@pytest.mark.parametrize("found", ["Nayarit, México", "México"])
def test_generic_result_is_demoted_to_low(found):
    assessment = grade(Provenance.PROVIDER_A, 10, found, "Calle Inventada")
    assert assessment.tier is QualityTier.LOW
    assert assessment.precision_meters == 600


@pytest.mark.parametrize(
    "found, provenance, score",
    [
        ("63000, Nayarit, México", Provenance.PROVIDER_A, 10),
        ("63175, México", Provenance.PROVIDER_B, 1.0),
    ],
)
def test_postal_code_only_is_low(found, provenance, score):
    assessment = grade(provenance, score, found, "Calle 5 de Mayo 20")
    assert assessment.tier is QualityTier.LOW
    assert assessment.precision_meters == 600


def test_named_locality_is_not_generic():
    assert grade(Provenance.PROVIDER_A, 9, "Tepic, Nayarit, México", "Tepic").tier is QualityTier.EXCELLENT


@pytest.mark.parametrize(
    "score, expected",
    [(9, QualityTier.GOOD), (7, QualityTier.ACCEPTABLE), (5, QualityTier.ACCEPTABLE), (2, QualityTier.LOW)],
)
def test_missing_house_number_demotes_one_tier(score, expected):
    found = "Avenida Insurgentes, Tepic, Nayarit, México"
    assert grade(Provenance.PROVIDER_A, score, found, "Insurgentes 1072").tier is expected


def test_no_demotion_when_input_had_no_number():
    found = "Avenida Insurgentes, Tepic, Nayarit, México"
    assert grade(Provenance.PROVIDER_A, 9, found, "Avenida Insurgentes").tier is QualityTier.EXCELLENT


def test_demotion_is_logged(caplog):
    with caplog.at_level("WARNING"):
        grade(Provenance.PROVIDER_B, 0.95, "Nayarit, México", "Calle 1")
    assert "too generic" in " ".join(caplog.messages)


def test_grader_for_another_region():
    grader = QualityGrader(country_name="colombia", region_name="antioquia", locality_names=("medellín",))

    assert grader.grade(Provenance.PROVIDER_A, 10, "Antioquia, Colombia", "x").tier is QualityTier.LOW
    assert grader.grade(Provenance.PROVIDER_A, 10, "05001, Antioquia, Colombia", "x").tier is QualityTier.LOW
    assert grader.grade(Provenance.PROVIDER_A, 10, "Medellín, Colombia", "x").tier is QualityTier.EXCELLENT
