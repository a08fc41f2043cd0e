#!/usr/bin/env python3
"""
Mission planner: builds optics, pattern, statistics and validation
from a YAML configuration
"""

import sys
import argparse
import dataclasses
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass

import yaml

from photoplan.camera_database import get_camera
from photoplan.camera_optics import CameraSpec, OpticsResult, compute_optics
from photoplan.coordinate_frame import CoordinateFrame, ENUPoint
from photoplan.errors import InvalidParameterError, PlannerError
from photoplan.mission_stats import MissionStats, summarize_mission
from photoplan.pattern_generator import (
    CameraMode, FacadeParams, GroundHeightFn, OrbitParams, PatternParams, PatternType,
    SpiralParams, SurveyParams, Waypoint, WindPolicy, generate_pattern,
)
from photoplan.validation_guard import ValidationGuard, ValidationLimits, ValidationReport


@dataclass
class MissionPlan:
    """Everything produced for one pattern calculation"""
    pattern_type: PatternType
    waypoints: List[Waypoint]
    optics: OpticsResult
    stats: MissionStats
    report: ValidationReport
    origin_revision: int


def camera_from_config(cam_config: Dict) -> CameraSpec:
    """Build a CameraSpec from a preset name and/or explicit fields"""
    values = dict(cam_config)
    preset = values.pop("preset", None)
    values.pop("focus_distance", None)

    if isinstance(values.get("focal_length"), list):
        values["focal_length"] = tuple(values["focal_length"])

    try:
        if preset:
            return dataclasses.replace(get_camera(preset), **values)
        return CameraSpec(**values)
    except TypeError as e:
        raise InvalidParameterError(f"Invalid camera configuration: {e}")


def _point(value) -> ENUPoint:
    if len(value) not in (2, 3):
        raise InvalidParameterError(f"Expected [east, north] or [east, north, up], got {value!r}")
    return ENUPoint(*(float(v) for v in value))


def optics_distance(params: PatternParams) -> float:
    """Camera-to-subject distance the optics are evaluated at for a pattern"""
    if isinstance(params, FacadeParams):
        return params.standoff_distance
    elif isinstance(params, SpiralParams):
        return params.start_altitude
    return params.altitude


class MissionPlanner:
    """Wires camera optics, pattern generation, statistics and validation"""

    def __init__(self, config_file: str = None, config: Dict = None):
        """Initialize planner with a configuration file or an already-loaded dict"""
        self.logger = logging.getLogger(__name__)
        if config is None:
            if config_file is None:
                raise InvalidParameterError("A configuration file or dict is required")
            config = self._load_config(config_file)
        self.config = config

        self._init_components()

    def _load_config(self, config_file: str) -> dict:
        """Load configuration from YAML file"""
        with open(config_file, 'r') as f:
            return yaml.safe_load(f) or {}

    def _section(self, name: str) -> Dict:
        section = self.config.get(name)
        if section is None:
            raise InvalidParameterError(f"Configuration is missing the '{name}' section")
        return section

    def _init_components(self):
        """Initialize all planner components"""
        # Takeoff origin
        origin = self._section('origin')
        self.frame = CoordinateFrame()
        self.frame.set_origin(origin['lat'], origin['lon'], origin.get('altitude', 0.0))

        # Camera
        cam_config = self._section('camera')
        self.camera = camera_from_config(cam_config)
        self.focus_distance = cam_config.get('focus_distance')

        # Flight settings
        flight = self.config.get('flight', {})
        self.speed = flight.get('speed', 5.0)
        self.hover_time = flight.get('hover_time', 0.0)
        self.battery_minutes = flight.get('battery_minutes')

        # Safety limits
        try:
            self.guard = ValidationGuard(ValidationLimits(**self.config.get('safety', {})))
        except TypeError as e:
            raise InvalidParameterError(f"Invalid safety configuration: {e}")

        wind = self.config.get('wind_policy', {})
        self.wind_policy = WindPolicy(
            speed_threshold=wind.get('speed_threshold', 3.0),
            crosswind_offset_deg=wind.get('crosswind_offset_deg', 90.0)
        )

    def build_pattern_params(self, pattern_type: Optional[str] = None) -> PatternParams:
        """Build pattern parameters from the 'pattern' section (type defaults to pattern.type)"""
        pattern = self._section('pattern')
        pattern_type = PatternType(pattern_type or pattern.get('type', 'survey'))

        section = pattern.get(pattern_type.value)
        if section is None:
            raise InvalidParameterError(f"No '{pattern_type.value}' parameters in pattern section")
        values = dict(section)
        values.setdefault('speed', self.speed)

        if pattern_type == PatternType.ORBIT:
            values['center'] = _point(values.get('center', [0, 0]))
            if 'camera_mode' in values:
                values['camera_mode'] = CameraMode(values['camera_mode'])
            params_class = OrbitParams
        elif pattern_type == PatternType.SPIRAL:
            values['center'] = _point(values.get('center', [0, 0]))
            params_class = SpiralParams
        elif pattern_type == PatternType.FACADE:
            values['corners'] = tuple(_point(c) for c in values.get('corners', []))
            if 'selected_faces' in values:
                values['selected_faces'] = frozenset(values['selected_faces'])
            params_class = FacadeParams
        else:
            if 'polygon_latlon' in values:
                values['polygon'] = tuple(self.frame.polygon_to_enu(values.pop('polygon_latlon')))
            else:
                values['polygon'] = tuple(_point(v) for v in values.get('polygon', []))
            params_class = SurveyParams

        try:
            return params_class(**values)
        except TypeError as e:
            raise InvalidParameterError(f"Invalid {pattern_type.value} parameters: {e}")

    def plan(self, params: PatternParams = None,
             ground_height: Optional[GroundHeightFn] = None) -> MissionPlan:
        """Compute optics, generate waypoints, derive statistics and validate"""
        if params is None:
            params = self.build_pattern_params()

        distance = optics_distance(params)
        optics = compute_optics(self.camera, distance, self.focus_distance)

        waypoints = generate_pattern(optics, params, self.frame.origin,
                                     ground_height=ground_height, wind_policy=self.wind_policy)

        stats = summarize_mission(
            waypoints,
            params.speed,
            survey=params if isinstance(params, SurveyParams) else None,
            optics=optics,
            hover_time_per_capture=self.hover_time,
            battery_minutes=self.battery_minutes
        )

        report = self.guard.assess_mission(waypoints, gsd=optics.gsd)

        self.logger.info(f"Planned {params.pattern_type.value}: {len(waypoints)} waypoints, "
                         f"{stats.total_distance:.0f}m, {stats.estimated_time / 60:.1f}min")

        return MissionPlan(
            pattern_type=params.pattern_type,
            waypoints=waypoints,
            optics=optics,
            stats=stats,
            report=report,
            origin_revision=self.frame.revision
        )

    def is_current(self, plan: MissionPlan) -> bool:
        """False once the origin has been reset since the plan was made"""
        return plan.origin_revision == self.frame.revision


def print_plan(plan: MissionPlan):
    """Print a human-readable mission summary"""
    optics = plan.optics
    stats = plan.stats

    print(f"\n{'='*60}")
    print(f"Pattern: {plan.pattern_type.value}")
    print(f"{'='*60}")
    print(f"GSD: {optics.gsd:.2f} cm/px")
    print(f"Footprint: {optics.footprint.width:.1f}m x {optics.footprint.height:.1f}m")
    print(f"FOV: {optics.horizontal_fov:.1f} x {optics.vertical_fov:.1f} deg")
    far = "inf" if optics.dof.far_limit == float('inf') else f"{optics.dof.far_limit:.1f}m"
    print(f"DOF: {optics.dof.near_limit:.1f}m to {far} (hyperfocal {optics.dof.hyperfocal_distance:.1f}m)")
    print(f"\nWaypoints: {len(plan.waypoints)}")
    print(f"Total distance: {stats.total_distance:.0f}m")
    print(f"Estimated time: {stats.estimated_time / 60:.1f} minutes")
    if stats.coverage_area:
        print(f"Coverage area: {stats.coverage_area:.0f}m^2")
    print(f"Images required: {stats.images_required}")
    if stats.batteries_required:
        print(f"Batteries required: {stats.batteries_required}")

    print(f"\nValidation: {plan.report.status.value}")
    for issue in plan.report.issues:
        print(f"  - {issue}")


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Photogrammetry mission planner')
    parser.add_argument('--config', '-c', default='config/mission_config.yaml',
                        help='Configuration file path')
    parser.add_argument('--pattern', '-p', default=None,
                        choices=[p.value for p in PatternType],
                        help='Pattern type (defaults to pattern.type in the config)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        planner = MissionPlanner(args.config)
        plan = planner.plan(planner.build_pattern_params(args.pattern))
    except (PlannerError, OSError, yaml.YAMLError) as e:
        print(f"\nError: {e}")
        return 1

    print_plan(plan)
    return 0 if plan.report.can_fly else 2


if __name__ == "__main__":
    sys.exit(main())
