"""
Pure projections from report payloads to display models.

Nothing here touches the network, the store or the notification channel:
each ``render_*`` function takes a payload (a mapping as returned by the
service, or the matching pydantic model) and returns a :class:`ReportView`
that any front end can walk section by section.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from dateutil import parser as date_parser

from .config import GeneralConfig
from .models import (
    REPORT_MODELS,
    DisasterReport,
    FinalReport,
    SurveyRecord,
    VastuReport,
)

NOT_FOUND_TEXT = GeneralConfig.NOT_FOUND_TEXT
DISPLAY_DATE_FORMAT = "%d %b %Y"
EMPTY_SURVEYS_TEXT = "No surveys found"
SURVEY_PLACEHOLDER_LABEL = "-- Select Survey --"


# --------------------------------------------------------------------------- #
# Display model
# --------------------------------------------------------------------------- #
@dataclass
class Badge:
    label: str
    tone: str


@dataclass
class InfoItem:
    label: str
    value: str
    tone: Optional[str] = None


@dataclass
class StatCard:
    label: str
    value: str
    band: Optional[str] = None
    highlight: bool = False


@dataclass
class ScoreCard:
    label: str
    score: Optional[float]
    value: str
    band: Optional[str]


@dataclass
class Note:
    label: Optional[str]
    text: str


@dataclass
class Alert:
    severity: str
    category: str
    description: str
    impact: str

    @property
    def parts(self) -> tuple:
        """Category, description and impact, in display order."""
        return (self.category, self.description, self.impact)


@dataclass
class CorrectionItem:
    priority: str
    violation: str
    solution: str


@dataclass
class Card:
    title: str
    icon: str
    items: List[InfoItem] = field(default_factory=list)


@dataclass
class BulletList:
    title: str
    icon: str
    items: List[str] = field(default_factory=list)


Block = Union[Badge, InfoItem, StatCard, ScoreCard, Note, Alert, CorrectionItem, Card, BulletList]


@dataclass
class Section:
    title: str
    blocks: List[Block] = field(default_factory=list)

    def of_type(self, block_type: type) -> List[Block]:
        return [b for b in self.blocks if isinstance(b, block_type)]


@dataclass
class ReportView:
    kind: str
    title: str
    icon: str
    timestamp: Optional[str]
    date_display: str
    badges: List[Badge] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)

    @property
    def section_titles(self) -> List[str]:
        return [s.title for s in self.sections]

    def section(self, title: str) -> Optional[Section]:
        return next((s for s in self.sections if s.title == title), None)


@dataclass
class SurveyCard:
    survey_id: str
    title: str
    badge: Badge
    items: List[InfoItem]


@dataclass
class SurveyOption:
    value: str
    label: str
    selected: bool = False


# --------------------------------------------------------------------------- #
# Shared formatting helpers
# --------------------------------------------------------------------------- #
def score_class(score: float) -> str:
    """Band a 0–100 score: excellent (≥80), good (≥60), moderate (≥40), else poor."""
    for threshold, band in GeneralConfig.SCORE_BANDS:
        if score >= threshold:
            return band
    return GeneralConfig.SCORE_FLOOR_BAND


def format_display_date(raw: Optional[str]) -> str:
    """Format an ISO-ish timestamp for display; the raw value is kept elsewhere."""
    if not raw:
        return NOT_FOUND_TEXT
    try:
        return date_parser.parse(str(raw)).strftime(DISPLAY_DATE_FORMAT)
    except (ValueError, OverflowError):
        return str(raw)


def _num(value: Optional[float], digits: int = 2, unit: str = "") -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return NOT_FOUND_TEXT
    text = f"{value:.{digits}f}" if digits is not None else f"{value:g}"
    return f"{text}{unit}"


def _plain(value: Any, unit: str = "") -> str:
    if value is None or value == "":
        return NOT_FOUND_TEXT
    if isinstance(value, float):
        value = f"{value:g}"
    return f"{value}{unit}"


def _yes_no(value: Optional[bool], yes: str = "Yes", no: str = "No") -> str:
    if value is None:
        return NOT_FOUND_TEXT
    return yes if value else no


def _tone(value: Optional[str]) -> str:
    return (value or "unknown").strip().lower() or "unknown"


def _score_card(label: str, score: Optional[float]) -> ScoreCard:
    if score is None:
        return ScoreCard(label=label, score=None, value=NOT_FOUND_TEXT, band=None)
    return ScoreCard(label=label, score=score, value=_num(score, 1), band=score_class(score))


def _coerce(model_cls, payload):
    if isinstance(payload, model_cls):
        return payload
    return model_cls.model_validate(payload or {})


# --------------------------------------------------------------------------- #
# Reports
# --------------------------------------------------------------------------- #
def render_disaster_report(payload: Union[Mapping[str, Any], DisasterReport, None]) -> ReportView:
    report = _coerce(DisasterReport, payload)

    loads = Section(
        "Load Analysis",
        [
            StatCard("Dead Load", _num(report.dead_load, unit=" kN")),
            StatCard("Live Load", _num(report.live_load, unit=" kN")),
            StatCard("Wind Load", _num(report.wind_load, unit=" kN")),
            StatCard("Seismic Load", _num(report.seismic_load, unit=" kN")),
            StatCard("Total Load", _num(report.total_load, unit=" kN"), highlight=True),
        ],
    )
    structural = Section(
        "Structural Recommendations",
        [
            InfoItem("Height Category", _plain(report.height_category)),
            InfoItem("Foundation Type", _plain(report.recommended_foundation)),
            InfoItem("Foundation Depth", _plain(report.foundation_depth, "m")),
            InfoItem("Column Spacing", _plain(report.column_spacing, "m")),
            InfoItem("Shear Walls Required", _yes_no(report.shear_wall_required)),
            Note("Beam Sizing", _plain(report.beam_sizing)),
        ],
    )

    if report.soft_story_detected is None:
        soft_story = InfoItem("Soft Story Detected", NOT_FOUND_TEXT)
    elif report.soft_story_detected:
        soft_story = InfoItem("Soft Story Detected", "Yes - Critical!", tone="danger")
    else:
        soft_story = InfoItem("Soft Story Detected", "No", tone="success")
    earthquake = Section(
        "Earthquake Analysis",
        [
            _score_card("Safety Score", report.earthquake_safety_score),
            InfoItem("Base Shear", _num(report.base_shear, unit=" kN")),
            soft_story,
        ],
    )
    flood = Section(
        "Flood Analysis",
        [
            InfoItem("Minimum Plinth Height", _plain(report.minimum_plinth_height, "m")),
            InfoItem("Drainage Slope", _plain(report.drainage_slope, "%")),
            InfoItem("Basement Feasible", _yes_no(report.basement_feasible)),
        ],
    )
    wind = Section(
        "Wind/Cyclone Analysis",
        [
            InfoItem(
                "Vortex Shedding Risk",
                _plain(report.vortex_shedding_risk),
                tone=_tone(report.vortex_shedding_risk),
            ),
            InfoItem("Height to Width Ratio", _num(report.height_to_width_ratio)),
            Note("Shape Optimization", _plain(report.shape_optimization)),
        ],
    )

    return ReportView(
        kind="disaster",
        title="Disaster Analysis Report",
        icon="exclamation-triangle",
        timestamp=report.created_at,
        date_display=format_display_date(report.created_at),
        sections=[loads, structural, earthquake, flood, wind],
    )


def render_vastu_report(payload: Union[Mapping[str, Any], VastuReport, None]) -> ReportView:
    report = _coerce(VastuReport, payload)

    def compliant(value: Optional[bool]) -> str:
        return _yes_no(value, yes="✓ Compliant", no="✗ Non-compliant")

    sections = [
        Section(
            "Vastu Compliance",
            [
                _score_card("Compliance Score", report.vastu_compliance_score),
                InfoItem(
                    "Overall Compliance",
                    _plain(report.overall_compliance),
                    tone=_tone(report.overall_compliance),
                ),
            ],
        ),
        Section(
            "Directional Analysis",
            [
                InfoItem("Entrance Direction", _plain(report.entrance_direction)),
                InfoItem("Entrance Suitability", _plain(report.entrance_suitability)),
                InfoItem("Kitchen Zone", compliant(report.kitchen_zone_compliance)),
                InfoItem("Bedroom Zone", compliant(report.bedroom_zone_compliance)),
                InfoItem("Staircase", compliant(report.staircase_compliance)),
            ],
        ),
        Section(
            "Water Element Placement",
            [
                Note("Water Tank Direction", _plain(report.water_tank_direction)),
                Note("Borewell Direction", _plain(report.borewell_direction)),
            ],
        ),
        Section(
            "Wind-Vastu Compatibility",
            [Note(None, _plain(report.wind_vastu_compatibility))],
        ),
    ]

    if report.violations:
        sections.append(
            Section(
                "Violations Detected",
                [
                    Alert(
                        severity=_tone(v.severity),
                        category=v.category,
                        description=v.description,
                        impact=v.impact,
                    )
                    for v in report.violations
                ],
            )
        )
    if report.corrections:
        sections.append(
            Section(
                "Recommended Corrections",
                [
                    CorrectionItem(priority=c.priority, violation=c.violation, solution=c.solution)
                    for c in report.corrections
                ],
            )
        )

    return ReportView(
        kind="vastu",
        title="Vastu Shastra Analysis Report",
        icon="om",
        timestamp=report.created_at,
        date_display=format_display_date(report.created_at),
        sections=sections,
    )


def render_final_report(payload: Union[Mapping[str, Any], FinalReport, None]) -> ReportView:
    report = _coerce(FinalReport, payload)
    summary = report.survey_summary
    risk = report.risk_analysis

    scores = Section(
        "Composite Scores",
        [
            _score_card("Safety Score", report.overall_safety_score),
            _score_card("Cost Efficiency", report.cost_efficiency_score),
            _score_card("Sustainability", report.sustainability_score),
            _score_card("Vastu Score", report.vastu_score),
        ],
    )

    if summary.location.lat is None and summary.location.lng is None:
        location = NOT_FOUND_TEXT
    else:
        location = f"{_plain(summary.location.lat)}, {_plain(summary.location.lng)}"
    survey = Section(
        "Survey Summary",
        [
            InfoItem("Location", location),
            InfoItem("Plot Area", _plain(summary.plot_area, " sq.m")),
            InfoItem("Soil Type", _plain(summary.soil_type)),
            InfoItem("Seismic Zone", _plain(summary.seismic_zone)),
            InfoItem("Flood Risk", _plain(summary.flood_risk)),
        ],
    )

    risks = Section(
        "Risk Analysis",
        [
            Card(
                "Earthquake Risk",
                "house-damage",
                [
                    InfoItem("Zone", _plain(risk.earthquake_risk.zone)),
                    InfoItem("Safety Score", _plain(risk.earthquake_risk.safety_score)),
                    InfoItem("Base Shear", _plain(risk.earthquake_risk.base_shear, " kN")),
                ],
            ),
            Card(
                "Flood Risk",
                "water",
                [
                    InfoItem("Level", _plain(risk.flood_risk.level)),
                    InfoItem("Plinth Height", _plain(risk.flood_risk.plinth_height, "m")),
                    InfoItem(
                        "Basement",
                        _yes_no(risk.flood_risk.basement_feasible, yes="Feasible", no="Not Feasible"),
                    ),
                ],
            ),
            Card(
                "Wind Risk",
                "wind",
                [
                    InfoItem("Vortex Shedding", _plain(risk.wind_risk.vortex_shedding)),
                    InfoItem("H/W Ratio", _plain(risk.wind_risk.height_to_width_ratio)),
                ],
            ),
        ],
    )

    recs = report.final_recommendations
    rec_blocks = [
        BulletList(title, icon, list(items))
        for title, icon, items in (
            ("Structural", "hard-hat", recs.structural),
            ("Disaster Mitigation", "exclamation-triangle", recs.disaster),
            ("Vastu", "om", recs.vastu),
            ("General", "info-circle", recs.general),
        )
        if items
    ]

    sections = [scores, survey, risks]
    if rec_blocks:
        sections.append(Section("Final Recommendations", rec_blocks))

    badges = [Badge(report.report_status, "success")] if report.report_status else []
    return ReportView(
        kind="final",
        title="Comprehensive Analysis Report",
        icon="file-alt",
        timestamp=report.generated_at,
        date_display=format_display_date(report.generated_at),
        badges=badges,
        sections=sections,
    )


_RENDERERS = {
    "disaster": render_disaster_report,
    "vastu": render_vastu_report,
    "final": render_final_report,
}


def render_report(kind: str, payload: Any) -> ReportView:
    """Dispatch to the renderer for *kind* (``disaster``, ``vastu`` or ``final``)."""
    try:
        renderer = _RENDERERS[kind]
    except KeyError as exc:
        valid = ", ".join(sorted(REPORT_MODELS))
        raise ValueError(f"Unknown report kind '{kind}'. Valid options are: {valid}") from exc
    return renderer(payload)


# --------------------------------------------------------------------------- #
# Surveys
# --------------------------------------------------------------------------- #
def _surveys(surveys: Optional[Iterable[Any]]) -> List[SurveyRecord]:
    return [_coerce(SurveyRecord, s) for s in (surveys or [])]


def render_survey_list(surveys: Optional[Iterable[Any]]) -> List[SurveyCard]:
    """One card per survey; an empty list means "show the empty state"."""
    cards = []
    for s in _surveys(surveys):
        cards.append(
            SurveyCard(
                survey_id=s.id,
                title=f"Survey {s.id[:8]}",
                badge=Badge(_plain(s.seismic_zone), _tone(s.seismic_zone)),
                items=[
                    InfoItem("Location", f"{_plain(s.latitude)}, {_plain(s.longitude)}"),
                    InfoItem("Plot Area", _plain(s.plot_area, " sq.m")),
                    InfoItem("Soil", _plain(s.soil_type)),
                    InfoItem("Flood Risk", _plain(s.flood_risk)),
                ],
            )
        )
    return cards


def survey_options(
    surveys: Optional[Iterable[Any]], selected_id: Optional[str] = None
) -> List[SurveyOption]:
    """Dropdown entries, led by an empty placeholder, with *selected_id* flagged."""
    options = [SurveyOption("", SURVEY_PLACEHOLDER_LABEL, selected=not selected_id)]
    for s in _surveys(surveys):
        label = f"{_plain(s.latitude)}, {_plain(s.longitude)} - {_plain(s.soil_type)}"
        options.append(SurveyOption(s.id, label, selected=s.id == selected_id))
    return options


SURVEY_COLUMNS: Sequence[str] = (
    "ID",
    "Latitude",
    "Longitude",
    "Plot Area (sq.m)",
    "Soil Type",
    "Seismic Zone",
    "Flood Risk",
    "Created",
)


def surveys_frame(surveys: Optional[Iterable[Any]]) -> pd.DataFrame:
    """Tabular view of the cached surveys, newest first when dates are known."""
    rows = [
        {
            "ID": s.id,
            "Latitude": s.latitude,
            "Longitude": s.longitude,
            "Plot Area (sq.m)": s.plot_area,
            "Soil Type": s.soil_type,
            "Seismic Zone": s.seismic_zone,
            "Flood Risk": s.flood_risk,
            "Created": s.created_at,
        }
        for s in _surveys(surveys)
    ]
    if not rows:
        return pd.DataFrame(columns=list(SURVEY_COLUMNS))

    frame = pd.DataFrame(rows, columns=list(SURVEY_COLUMNS))
    frame["Created"] = pd.to_datetime(frame["Created"], errors="coerce", utc=True)
    return frame.sort_values("Created", ascending=False, na_position="last").reset_index(drop=True)
