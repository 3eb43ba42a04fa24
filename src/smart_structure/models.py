"""Pydantic models for everything that crosses the wire.

The service speaks camelCase; the models use snake_case attributes with
camelCase aliases, accept either on input, and keep unknown fields so that
nothing the service sends is lost.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_payload(self) -> Dict[str, Any]:
        """Return the flat camelCase field mapping sent as a request body."""
        return self.model_dump(by_alias=True, mode="json")


class _Record(WireModel):
    """A resource owned by the service; only its ``id`` is mandatory."""

    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


# --------------------------------------------------------------------------- #
# Auth
# --------------------------------------------------------------------------- #
class User(WireModel):
    id: str
    name: str
    role: Optional[str] = None
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Session(BaseModel):
    """Authenticated session. Token and user always travel together."""

    access_token: str = Field(min_length=1)
    refresh_token: str = ""
    user: User


# --------------------------------------------------------------------------- #
# Forms (request bodies)
# --------------------------------------------------------------------------- #
class SurveyForm(WireModel):
    latitude: float
    longitude: float
    plot_area: float
    soil_type: str
    slope: float
    elevation: float
    water_table_depth: float
    seismic_zone: str
    flood_risk: str
    nearby_water_bodies: bool = False
    water_body_distance: Optional[float] = None
    average_rainfall: Optional[float] = None


class BuildingForm(WireModel):
    """Building geometry; ``landSurveyId`` is added by the workflow."""

    building_type: str
    total_floors: int
    floor_height: float
    total_height: float
    built_up_area: float
    orientation: str
    structural_system: str
    basement_floors: int = 0
    parking_floors: int = 0
    expected_occupancy: Optional[int] = None


class WindForm(WireModel):
    """Wind parameters; ``buildingInputId`` is added by the workflow."""

    wind_direction: float = Field(ge=0, lt=360)
    average_wind_speed: float = Field(ge=0)
    peak_gust_speed: float = Field(ge=0)
    terrain_roughness: str


# --------------------------------------------------------------------------- #
# Records
# --------------------------------------------------------------------------- #
class SurveyRecord(_Record):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    plot_area: Optional[float] = None
    soil_type: Optional[str] = None
    slope: Optional[float] = None
    elevation: Optional[float] = None
    water_table_depth: Optional[float] = None
    seismic_zone: Optional[str] = None
    flood_risk: Optional[str] = None
    nearby_water_bodies: Optional[bool] = None
    water_body_distance: Optional[float] = None
    average_rainfall: Optional[float] = None


class BuildingInputRecord(_Record):
    land_survey_id: Optional[str] = None
    building_type: Optional[str] = None
    total_floors: Optional[int] = None
    floor_height: Optional[float] = None
    total_height: Optional[float] = None
    built_up_area: Optional[float] = None
    orientation: Optional[str] = None
    structural_system: Optional[str] = None
    basement_floors: Optional[int] = None
    parking_floors: Optional[int] = None
    expected_occupancy: Optional[int] = None


# --------------------------------------------------------------------------- #
# Reports
# Every scalar is optional: the renderer shows a placeholder for gaps.
# --------------------------------------------------------------------------- #
class DisasterReport(WireModel):
    created_at: Optional[str] = None
    dead_load: Optional[float] = None
    live_load: Optional[float] = None
    wind_load: Optional[float] = None
    seismic_load: Optional[float] = None
    total_load: Optional[float] = None
    height_category: Optional[str] = None
    recommended_foundation: Optional[str] = None
    foundation_depth: Optional[float] = None
    column_spacing: Optional[float] = None
    shear_wall_required: Optional[bool] = None
    beam_sizing: Optional[str] = None
    earthquake_safety_score: Optional[float] = None
    base_shear: Optional[float] = None
    soft_story_detected: Optional[bool] = None
    minimum_plinth_height: Optional[float] = None
    drainage_slope: Optional[float] = None
    basement_feasible: Optional[bool] = None
    vortex_shedding_risk: Optional[str] = None
    height_to_width_ratio: Optional[float] = None
    shape_optimization: Optional[str] = None


class Violation(WireModel):
    severity: str = "info"
    category: str = ""
    description: str = ""
    impact: str = ""


class Correction(WireModel):
    priority: str = "low"
    violation: str = ""
    solution: str = ""


class VastuReport(WireModel):
    created_at: Optional[str] = None
    vastu_compliance_score: Optional[float] = None
    overall_compliance: Optional[str] = None
    entrance_direction: Optional[str] = None
    entrance_suitability: Optional[str] = None
    kitchen_zone_compliance: Optional[bool] = None
    bedroom_zone_compliance: Optional[bool] = None
    staircase_compliance: Optional[bool] = None
    water_tank_direction: Optional[str] = None
    borewell_direction: Optional[str] = None
    wind_vastu_compatibility: Optional[str] = None
    violations: Optional[List[Violation]] = None
    corrections: Optional[List[Correction]] = None


class Location(WireModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class SurveySummary(WireModel):
    location: Location = Field(default_factory=Location)
    plot_area: Optional[float] = None
    soil_type: Optional[str] = None
    seismic_zone: Optional[str] = None
    flood_risk: Optional[str] = None


class EarthquakeRisk(WireModel):
    zone: Optional[str] = None
    safety_score: Optional[float] = None
    base_shear: Optional[float] = None


class FloodRisk(WireModel):
    level: Optional[str] = None
    plinth_height: Optional[float] = None
    basement_feasible: Optional[bool] = None


class WindRisk(WireModel):
    vortex_shedding: Optional[str] = None
    height_to_width_ratio: Optional[float] = None


class RiskAnalysis(WireModel):
    earthquake_risk: EarthquakeRisk = Field(default_factory=EarthquakeRisk)
    flood_risk: FloodRisk = Field(default_factory=FloodRisk)
    wind_risk: WindRisk = Field(default_factory=WindRisk)


class FinalRecommendations(WireModel):
    structural: Optional[List[str]] = None
    disaster: Optional[List[str]] = None
    vastu: Optional[List[str]] = None
    general: Optional[List[str]] = None


class FinalReport(WireModel):
    generated_at: Optional[str] = None
    report_status: Optional[str] = None
    overall_safety_score: Optional[float] = None
    cost_efficiency_score: Optional[float] = None
    sustainability_score: Optional[float] = None
    vastu_score: Optional[float] = None
    survey_summary: SurveySummary = Field(default_factory=SurveySummary)
    risk_analysis: RiskAnalysis = Field(default_factory=RiskAnalysis)
    final_recommendations: FinalRecommendations = Field(default_factory=FinalRecommendations)


REPORT_MODELS = {
    "disaster": DisasterReport,
    "vastu": VastuReport,
    "final": FinalReport,
}
