"""Tests for the configuration-driven mission planner"""

import copy
import os

import pytest
import yaml

from photoplan.camera_optics import CameraSpec
from photoplan.errors import InvalidParameterError, OriginNotSetError
from photoplan.pattern_generator import (
    FacadeParams,
    OrbitParams,
    PatternType,
    SpiralParams,
    SurveyParams,
    generate_pattern,
)
from photoplan.planner import MissionPlanner, camera_from_config, main, optics_distance
from photoplan.validation_guard import ValidationStatus


CONFIG_FILE = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
                           "config", "mission_config.yaml")


@pytest.fixture
def config():
    with open(CONFIG_FILE, 'r') as f:
        return yaml.safe_load(f)


@pytest.fixture
def planner(config):
    return MissionPlanner(config=config)


def test_load_from_file():
    planner = MissionPlanner(CONFIG_FILE)

    assert planner.frame.has_origin
    assert planner.camera.name == "DJI Phantom 4 Pro"
    assert planner.camera.aperture == 5.6
    assert planner.guard.limits.altitude_max == 120


def test_default_pattern_is_survey(planner):
    plan = planner.plan()

    assert plan.pattern_type == PatternType.SURVEY
    assert len(plan.waypoints) == 80
    assert plan.optics.gsd == pytest.approx(1.645, abs=1e-3)
    assert plan.stats.coverage_area == pytest.approx(30000)
    assert plan.stats.images_required == 64
    assert plan.stats.batteries_required == 1
    assert plan.report.status == ValidationStatus.OK


@pytest.mark.parametrize("pattern,count", [
    ("orbit", 17),
    ("spiral", 61),
    ("facade", 32),
])
def test_other_patterns(planner, pattern, count):
    params = planner.build_pattern_params(pattern)
    plan = planner.plan(params)

    assert plan.pattern_type.value == pattern
    assert len(plan.waypoints) == count
    assert plan.report.can_fly


def test_facade_low_pass_is_reported(planner):
    plan = planner.plan(planner.build_pattern_params("facade"))

    # Lowest pass at 3.2m sits under the 5m floor
    assert plan.report.status == ValidationStatus.WARNING
    assert any("too low" in issue for issue in plan.report.issues)


def test_flight_time_uses_pattern_speed(config):
    config["flight"]["speed"] = 5.0
    config["pattern"]["orbit"]["speed"] = 10.0
    planner = MissionPlanner(config=config)

    plan = planner.plan(planner.build_pattern_params("orbit"))

    assert all(wp.speed == 10.0 for wp in plan.waypoints)
    assert plan.stats.estimated_time == pytest.approx(plan.stats.total_distance / 10.0)


def test_build_params_types(planner):
    assert isinstance(planner.build_pattern_params("orbit"), OrbitParams)
    assert isinstance(planner.build_pattern_params("spiral"), SpiralParams)
    facade = planner.build_pattern_params("facade")
    assert isinstance(facade, FacadeParams)
    assert facade.selected_faces == frozenset({0, 1, 2, 3})
    survey = planner.build_pattern_params("survey")
    assert isinstance(survey, SurveyParams)
    assert survey.speed == 5.0


def test_survey_polygon_from_latlon(config):
    origin = config['origin']
    config['pattern']['survey'].pop('polygon')
    config['pattern']['survey']['polygon_latlon'] = [
        [origin['lat'], origin['lon']],
        [origin['lat'], origin['lon'] + 0.002],
        [origin['lat'] + 0.001, origin['lon'] + 0.002],
        [origin['lat'] + 0.001, origin['lon']],
    ]
    planner = MissionPlanner(config=config)
    plan = planner.plan()

    assert plan.stats.coverage_area == pytest.approx(150.6 * 111.2, rel=0.01)


def test_optics_distance():
    assert optics_distance(FacadeParams(corners=(), height=10, standoff_distance=8)) == 8
    assert optics_distance(OrbitParams(center=None, radius=10, altitude=40)) == 40


def test_plan_is_stale_after_reorigin(planner):
    plan = planner.plan()
    assert planner.is_current(plan)

    planner.frame.reset_origin(47.4, 8.55, 500)
    assert not planner.is_current(plan)


def test_camera_from_explicit_fields():
    camera = camera_from_config({
        'sensor_width': 13.2,
        'focal_length': [8.8, 24],
        'image_width': 5472,
        'image_height': 3648,
        'focus_distance': 30,
    })

    assert isinstance(camera, CameraSpec)
    assert camera.focal_length == (8.8, 24)

    with pytest.raises(InvalidParameterError):
        camera_from_config({'sensor_width': 13.2})
    with pytest.raises(InvalidParameterError):
        camera_from_config({'preset': 'phantom4pro', 'lens_mount': 'E'})


def test_missing_sections(config):
    broken = copy.deepcopy(config)
    del broken['origin']
    with pytest.raises(InvalidParameterError):
        MissionPlanner(config=broken)

    broken = copy.deepcopy(config)
    del broken['pattern']['orbit']
    with pytest.raises(InvalidParameterError):
        MissionPlanner(config=broken).build_pattern_params("orbit")

    with pytest.raises(InvalidParameterError):
        MissionPlanner()


def test_invalid_safety_section(config):
    config['safety']['max_altitude'] = 100
    with pytest.raises(InvalidParameterError):
        MissionPlanner(config=config)


def test_generators_refuse_missing_origin(planner):
    with pytest.raises(OriginNotSetError):
        generate_pattern(None, planner.build_pattern_params("orbit"), None)


def test_main(capsys):
    assert main(['--config', CONFIG_FILE, '--pattern', 'orbit']) == 0

    output = capsys.readouterr().out
    assert "Pattern: orbit" in output
    assert "Waypoints: 17" in output


def test_main_reports_errors(capsys, tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("camera:\n  preset: phantom4pro\n")

    assert main(['--config', str(config_file)]) == 1
    assert "Error" in capsys.readouterr().out


def test_main_missing_file():
    assert main(['--config', 'does/not/exist.yaml']) == 1
