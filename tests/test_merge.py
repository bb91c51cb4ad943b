"""Tests for the merge policy."""

import pytest

from netintel.core.models import IntelRecord, PartialObservation
from netintel.enrichment.merge import choose_isp, is_geo_weak, merge_intel, should_stop_early


# ---------------------------------------------------------------------------
# choose_isp
# ---------------------------------------------------------------------------

class TestChooseIsp:
    def test_longer_meaningful_name_wins(self):
        assert choose_isp("Acme", "Acme Telecom") == "Acme Telecom"

    def test_tie_keeps_current(self):
        assert choose_isp("Acme", "Beta") == "Acme"

    def test_missing_current_takes_incoming(self):
        assert choose_isp(None, "Acme") == "Acme"

    def test_placeholder_incoming_keeps_current(self):
        assert choose_isp("Acme", "unknown") == "Acme"

    def test_meaningful_incoming_replaces_placeholder(self):
        assert choose_isp("n/a", " Acme ") == "Acme"

    def test_neither_meaningful_prefers_current_non_empty(self):
        assert choose_isp("unknown", "n/a") == "unknown"
        assert choose_isp(None, " - ") == "-"
        assert choose_isp(None, None) is None
        assert choose_isp("  ", None) is None


# ---------------------------------------------------------------------------
# merge_intel
# ---------------------------------------------------------------------------

class TestMergeIntel:
    def test_adopts_fields_into_empty_record(self):
        merged = merge_intel(IntelRecord(), PartialObservation(
            ipv4=" 203.0.113.5 ", city="Berlin", country="DE", isp="Acme", lat=52.5, lon=13.4,
        ))
        assert merged == IntelRecord(
            ipv4="203.0.113.5", city="Berlin", country="Germany", isp="Acme", lat=52.5, lon=13.4,
        )

    def test_does_not_mutate_inputs(self):
        current = IntelRecord(ipv4="203.0.113.5")
        incoming = PartialObservation(ipv6="2001:db8::1", city="Berlin")
        merge_intel(current, incoming)
        assert current == IntelRecord(ipv4="203.0.113.5")
        assert incoming == PartialObservation(ipv6="2001:db8::1", city="Berlin")

    def test_is_idempotent(self):
        record = IntelRecord(ipv4="198.51.100.7", isp="Acme")
        observation = PartialObservation(
            ipv6="2001:db8::1", isp="Acme Telecom LLC", city="Paris", country="fr", lat="48.8", lon="2.3",
        )
        once = merge_intel(record, observation)
        assert merge_intel(once, observation) == once

    def test_populated_ipv4_never_replaced(self):
        merged = merge_intel(IntelRecord(ipv4="203.0.113.5"), PartialObservation(ipv4="198.51.100.7"))
        assert merged.ipv4 == "203.0.113.5"

    def test_wrong_family_dropped(self):
        merged = merge_intel(IntelRecord(), PartialObservation(ipv4="2001:db8::1", ipv6="203.0.113.5"))
        assert merged.ipv4 is None
        assert merged.ipv6 is None

    def test_city_and_country_never_downgraded(self):
        current = IntelRecord(city="Berlin", country="Germany")
        merged = merge_intel(current, PartialObservation(city="unknown", country=""))
        assert merged.city == "Berlin"
        assert merged.country == "Germany"

    def test_first_meaningful_city_wins(self):
        merged = merge_intel(IntelRecord(city="Berlin"), PartialObservation(city="Hamburg"))
        assert merged.city == "Berlin"

    def test_placeholder_city_ignored(self):
        merged = merge_intel(IntelRecord(), PartialObservation(city="N/A"))
        assert merged.city is None

    @pytest.mark.parametrize("placeholder", ["Unknown", "n/a", "-"])
    def test_placeholder_country_does_not_block_real_one(self, placeholder):
        merged = merge_intel(IntelRecord(), PartialObservation(country=placeholder))
        assert merged.country is None

        merged = merge_intel(merged, PartialObservation(country="DE"))
        assert merged.country == "Germany"

    def test_country_code_expanded(self):
        merged = merge_intel(IntelRecord(), PartialObservation(country="ir"))
        assert merged.country == "Iran"

    def test_coordinates_adopted_as_pair_only(self):
        merged = merge_intel(IntelRecord(), PartialObservation(lat=52.5))
        assert merged.lat is None and merged.lon is None

    def test_coordinates_not_overwritten(self):
        current = IntelRecord(lat=1.0, lon=2.0)
        merged = merge_intel(current, PartialObservation(lat=3.0, lon=4.0))
        assert (merged.lat, merged.lon) == (1.0, 2.0)

    def test_string_coordinates_coerced(self):
        merged = merge_intel(IntelRecord(), PartialObservation(lat="52.5", lon="13.4"))
        assert (merged.lat, merged.lon) == (52.5, 13.4)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

class TestShouldStopEarly:
    def test_both_ips_without_geo_is_not_enough(self):
        record = IntelRecord(ipv4="203.0.113.5", ipv6="2001:db8::1")
        assert should_stop_early(record) is False

    def test_adding_country_is_enough(self):
        record = IntelRecord(ipv4="203.0.113.5", ipv6="2001:db8::1", country="Germany")
        assert should_stop_early(record) is True

    def test_isp_is_enough(self):
        record = IntelRecord(ipv4="203.0.113.5", ipv6="2001:db8::1", isp="Acme")
        assert should_stop_early(record) is True

    def test_placeholder_isp_is_not_enough(self):
        record = IntelRecord(ipv4="203.0.113.5", ipv6="2001:db8::1", isp="unknown")
        assert should_stop_early(record) is False

    @pytest.mark.parametrize("record", [
        IntelRecord(ipv4="203.0.113.5", country="Germany"),
        IntelRecord(ipv6="2001:db8::1", isp="Acme"),
    ])
    def test_single_family_is_not_enough(self, record):
        assert should_stop_early(record) is False


class TestIsGeoWeak:
    def test_empty_record_is_weak(self):
        assert is_geo_weak(IntelRecord(ipv4="203.0.113.5")) is True

    def test_city_is_not_weak(self):
        assert is_geo_weak(IntelRecord(city="Berlin")) is False

    def test_coordinates_are_not_weak(self):
        assert is_geo_weak(IntelRecord(lat=0.0, lon=0.0)) is False
