"""
Unit tests for the location and delivery mode filters
"""
import pytest

from services.programs.filters import (
    BRANCH_ALL,
    BRANCH_CITY,
    BRANCH_STATE,
    BRANCH_STATE_CITY,
    BRANCH_ZIP,
    BRANCH_ZIP_STATE_CITY,
    LocationFilter,
    matches_delivery_mode,
    matches_name,
    normalize_delivery_mode,
)


class TestLocationFilterBranch:
    """Test branch selection priority"""

    @pytest.mark.parametrize(
        "criteria, expected",
        [
            ({"zip_code": "30309", "state": "GA", "city": "Atlanta"}, BRANCH_ZIP_STATE_CITY),
            ({"state": "GA", "city": "Atlanta"}, BRANCH_STATE_CITY),
            ({"state": "GA", "zip_code": "30309"}, BRANCH_STATE),
            ({"city": "Atlanta", "zip_code": "30309"}, BRANCH_CITY),
            ({"zip_code": "30309"}, BRANCH_ZIP),
            ({}, BRANCH_ALL),
        ],
    )
    def test_branch_priority(self, criteria, expected):
        """The most specific combination of supplied fields wins"""
        assert LocationFilter(**criteria).branch == expected

    def test_blank_fields_are_missing(self):
        """Whitespace-only fields do not select a branch"""
        location = LocationFilter(zip_code=" ", state="", city="   ")

        assert location.is_empty is True
        assert location.branch == BRANCH_ALL

    def test_state_is_upper_cased(self):
        """State is normalized before the exact match"""
        assert LocationFilter(state=" ga ").state == "GA"

    def test_sql_conditions_follow_branch(self):
        """Only the fields of the selected branch produce conditions"""
        assert len(LocationFilter(state="GA", city="Atlanta").sql_conditions()) == 2
        assert len(LocationFilter(city="Atlanta", zip_code="30309").sql_conditions()) == 1
        assert LocationFilter().sql_conditions() == []


class TestLocationFilterMatches:
    """Test the in-memory predicate used for fallback data"""

    def test_state_exact_match(self):
        program = {"state": "GA", "city": "Atlanta", "zip_code": "30309"}

        assert LocationFilter(state="ga").matches(program) is True
        assert LocationFilter(state="FL").matches(program) is False

    def test_city_is_case_insensitive_substring(self):
        program = {"state": "GA", "city": "Savannah", "zip_code": "31401"}

        assert LocationFilter(city="SAV").matches(program) is True
        assert LocationFilter(city="Macon").matches(program) is False

    def test_zip_ignored_when_city_given(self):
        """The city branch does not look at the zip code"""
        program = {"state": "GA", "city": "Atlanta", "zip_code": "30303"}

        assert LocationFilter(city="Atlanta", zip_code="99999").matches(program) is True

    def test_all_fields_must_match_on_full_branch(self):
        program = {"state": "GA", "city": "Atlanta", "zip_code": "30303"}

        assert (
            LocationFilter(zip_code="30309", state="GA", city="Atlanta").matches(program)
            is False
        )

    def test_empty_filter_matches_everything(self):
        assert LocationFilter().matches({"state": None, "city": None}) is True


class TestDeliveryMode:
    """Test delivery mode normalization"""

    @pytest.mark.parametrize("keyword", ["virtual", "Remote", " ONLINE "])
    def test_virtual_keywords_expand(self, keyword):
        assert normalize_delivery_mode(keyword) == ["virtual-live", "virtual-self-paced"]

    def test_exact_virtual_mode_kept(self):
        assert normalize_delivery_mode("virtual-self-paced") == ["virtual-self-paced"]

    def test_in_person_spellings(self):
        assert normalize_delivery_mode("In Person") == ["in-person"]
        assert normalize_delivery_mode("in-person") == ["in-person"]

    def test_unknown_mode_is_literal(self):
        assert normalize_delivery_mode("Carrier Pigeon") == ["carrier pigeon"]

    def test_matches_delivery_mode(self):
        assert matches_delivery_mode({"delivery_mode": "virtual-live"}, "online") is True
        assert matches_delivery_mode({"delivery_mode": "hybrid"}, "online") is False
        assert matches_delivery_mode({"delivery_mode": None}, "hybrid") is False


def test_matches_name_is_case_insensitive_substring():
    program = {"organization_name": "Community Wellness Network"}

    assert matches_name(program, "wellness") is True
    assert matches_name(program, "clinic") is False
