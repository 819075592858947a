"""Tests for the duration calculator and service rule resolution."""

import pytest

from shoot_scheduler.tools.duration import duration_minutes, work_hours
from shoot_scheduler.tools.services import active_rules, get_all_services, get_rule
from tests.conftest import make_selection


class TestSingleServices:
    def test_no_services_needs_no_time(self):
        assert duration_minutes(make_selection()) == 0

    @pytest.mark.parametrize("count,expected", [(20, 40), (23, 55), (30, 90)])
    def test_photography_scales_with_photos(self, count, expected):
        assert duration_minutes(make_selection(photography=True, photoCount=count)) == expected

    def test_drone_photography_is_flat(self):
        assert duration_minutes(make_selection(dronePhotography=True, dronePhotoCount=20)) == 25

    @pytest.mark.parametrize("bedrooms,expected", [(2, 40), (3, 45), (5, 55)])
    def test_unpresented_video_scales_with_bedrooms(self, bedrooms, expected):
        assert duration_minutes(make_selection(standardVideo=True, bedrooms=bedrooms)) == expected

    @pytest.mark.parametrize("bedrooms,expected", [(2, 105), (3, 115), (5, 135)])
    def test_presented_video_scales_with_bedrooms(self, bedrooms, expected):
        selection = make_selection(agentPresentedVideo=True, bedrooms=bedrooms)
        assert duration_minutes(selection) == expected

    def test_floor_plan_and_social(self):
        assert duration_minutes(make_selection(floorPlan=True, bedrooms=4)) == 35
        assert duration_minutes(make_selection(floorPlanVirtualTour=True, bedrooms=3)) == 55
        assert duration_minutes(make_selection(socialMediaVideo=True)) == 25
        assert duration_minutes(make_selection(socialMediaPresentedVideo=True, bedrooms=3)) == 70


class TestCombinations:
    def test_photography_twenty_photos(self):
        assert duration_minutes(make_selection(photography=True, photoCount=20)) == 40

    def test_presented_video_with_drone(self):
        selection = make_selection(
            agentPresentedVideo=True, agentPresentedVideoDrone=True, bedrooms=3
        )
        assert duration_minutes(selection) == 140

    def test_unpresented_video_with_drone(self):
        selection = make_selection(standardVideo=True, standardVideoDrone=True)
        assert duration_minutes(selection) == 65

    def test_photography_presented_and_drone(self):
        selection = make_selection(
            photography=True,
            agentPresentedVideo=True,
            agentPresentedVideoDrone=True,
            bedrooms=3,
        )
        assert duration_minutes(selection) == 180

    def test_services_sum_independently(self):
        selection = make_selection(
            photography=True, photoCount=30, floorPlan=True, socialMediaVideo=True, bedrooms=3
        )
        assert duration_minutes(selection) == 90 + 30 + 30


class TestExclusivity:
    def test_presented_video_wins_over_unpresented(self):
        selection = make_selection(agentPresentedVideo=True, standardVideo=True)
        assert duration_minutes(selection) == 105
        assert [r.key for r in active_rules(selection)] == ["agent_presented_video"]

    def test_orphaned_drone_addon_is_ignored(self):
        selection = make_selection(agentPresentedVideoDrone=True, standardVideoDrone=True)
        assert duration_minutes(selection) == 0

    def test_drone_addon_follows_winning_video(self):
        selection = make_selection(
            agentPresentedVideo=True, standardVideo=True, standardVideoDrone=True
        )
        assert duration_minutes(selection) == 105

    def test_virtual_tour_wins_over_floor_plan(self):
        selection = make_selection(floorPlan=True, floorPlanVirtualTour=True)
        assert [r.key for r in active_rules(selection)] == ["floor_plan_virtual_tour"]

    def test_presented_social_wins_over_unpresented(self):
        selection = make_selection(socialMediaVideo=True, socialMediaPresentedVideo=True)
        assert duration_minutes(selection) == 60


class TestClamping:
    def test_bedrooms_below_minimum_clamped(self):
        one_bed = make_selection(standardVideo=True, bedrooms=1)
        assert one_bed.bedrooms == 2
        assert duration_minutes(one_bed) == 40

    def test_photo_count_below_minimum_clamped(self):
        assert duration_minutes(make_selection(photography=True, photoCount=5)) == 40

    def test_blank_inputs_fall_back_to_defaults(self):
        selection = make_selection(photography=True, photoCount="", bedrooms=None)
        assert selection.photo_count == 20
        assert selection.bedrooms == 2

    @pytest.mark.parametrize("count,tier", [(8, 8), (13, 8), (14, 8), (15, 20), (50, 20), (0, 8)])
    def test_drone_count_snaps_to_tier(self, count, tier):
        assert make_selection(dronePhotoCount=count).drone_photo_count == tier


class TestWorkHours:
    def test_photography_hours(self):
        assert work_hours(make_selection(photography=True)) == pytest.approx(0.67)

    def test_presented_video_hours(self):
        assert work_hours(make_selection(agentPresentedVideo=True)) == pytest.approx(1.75)

    def test_empty_selection(self):
        assert work_hours(make_selection()) == 0


class TestCatalog:
    def test_unknown_service_raises(self):
        with pytest.raises(ValueError, match="Unknown service"):
            get_rule("aerial_survey")

    def test_catalog_lists_every_rule(self):
        ids = [s["id"] for s in get_all_services()]
        assert "photography" in ids
        assert "floor_plan_virtual_tour" in ids
        assert len(ids) == len(set(ids))
