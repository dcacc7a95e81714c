import pytest

from focos.services.dedup import (
    Deduplicator,
    ExistingReport,
    deduplicate,
    source_id_for,
)
from focos.services.firms_parser import Hotspot
from focos.services.geo import destination_point

ORIGIN = (-42.23, -71.37)


def hotspot(lat=ORIGIN[0], lon=ORIGIN[1], acq_date="2026-01-17", acq_time="0142"):
    return Hotspot(latitude=lat, longitude=lon, acq_date=acq_date, acq_time=acq_time)


def test_source_id_format():
    assert source_id_for(hotspot()) == "2026-01-17_0142_-42.230_-71.370"


def test_source_id_equal_when_coordinates_agree_to_three_decimals():
    a = hotspot(lat=-42.23012, lon=-71.36998)
    b = hotspot(lat=-42.22991, lon=-71.37021)
    assert source_id_for(a) == source_id_for(b)


def test_source_id_differs_on_time():
    assert source_id_for(hotspot(acq_time="0142")) != source_id_for(hotspot(acq_time="0143"))


def test_exact_match_is_discarded_even_far_from_any_report():
    h = hotspot()
    dedup = Deduplicator([source_id_for(h)], [(0.0, 0.0)])

    result = dedup.filter([h])

    assert result.new == []
    assert result.exact_duplicates == 1
    assert result.proximity_duplicates == 0


@pytest.mark.parametrize("bearing", [0, 90, 225])
def test_hotspot_400m_from_existing_report_is_discarded(bearing):
    lat, lon = destination_point(*ORIGIN, bearing, 0.4)

    result = Deduplicator([], [ORIGIN]).filter([hotspot(lat, lon)])

    assert result.new == []
    assert result.proximity_duplicates == 1


@pytest.mark.parametrize("bearing", [0, 90, 225])
def test_hotspot_600m_from_existing_report_is_kept(bearing):
    lat, lon = destination_point(*ORIGIN, bearing, 0.6)
    h = hotspot(lat, lon)

    result = Deduplicator(["2026-01-16_0300_-42.230_-71.370"], [ORIGIN]).filter([h])

    assert result.new == [h]
    assert result.skipped == 0


def test_no_existing_reports_keeps_everything():
    batch = [hotspot(lat=-42.0 - i) for i in range(3)]
    assert deduplicate(batch, [], []) == batch


def test_nearest_of_many_reports_is_used():
    near = destination_point(*ORIGIN, 45, 0.3)
    existing = [(-30.0, -60.0), near, (-50.0, -70.0)]

    result = Deduplicator([], existing).filter([hotspot()])

    assert result.proximity_duplicates == 1


def test_within_batch_duplicates_are_dropped():
    first = hotspot()
    same_key = hotspot(lat=-42.2301)
    close_by = hotspot(*destination_point(*ORIGIN, 180, 0.2), acq_time="0330")
    far = hotspot(*destination_point(*ORIGIN, 180, 5.0))

    result = Deduplicator([], []).filter([first, same_key, close_by, far])

    assert result.new == [first, far]
    assert result.exact_duplicates == 1
    assert result.proximity_duplicates == 1


def test_within_batch_can_be_disabled():
    first = hotspot()
    close_by = hotspot(*destination_point(*ORIGIN, 180, 0.2), acq_time="0330")

    result = Deduplicator([], [], within_batch=False).filter([first, first, close_by])

    assert result.new == [first, first, close_by]


def test_from_reports_ignores_missing_source_ids():
    reports = [
        ExistingReport(-30.0, -60.0, None),
        ExistingReport(-31.0, -61.0, "2026-01-17_0142_-42.230_-71.370"),
    ]
    dedup = Deduplicator.from_reports(reports)

    result = dedup.filter([hotspot()])

    assert result.exact_duplicates == 1


def test_custom_radius():
    lat, lon = destination_point(*ORIGIN, 90, 0.8)
    h = hotspot(lat, lon)

    assert Deduplicator([], [ORIGIN], radius_km=1.0).filter([h]).new == []
    assert Deduplicator([], [ORIGIN], radius_km=0.5).filter([h]).new == [h]


@pytest.mark.parametrize("a,b", [((-0.0004, 10.0), (0.0004, 10.0)), ((10.0, -0.0003), (10.0, 0.0002))])
def test_source_id_has_no_negative_zero(a, b):
    assert source_id_for(hotspot(*a)) == source_id_for(hotspot(*b))
    assert "-0.000" not in source_id_for(hotspot(*a))
