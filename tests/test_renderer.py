import pytest
from smart_structure.renderer import (
    Alert,
    BulletList,
    CorrectionItem,
    InfoItem,
    ScoreCard,
    StatCard,
    format_display_date,
    render_report,
    render_survey_list,
    score_class,
    survey_options,
    surveys_frame,
)


@pytest.mark.parametrize(
    "score, band",
    [
        (100, "excellent"),
        (80, "excellent"),
        (79.99, "good"),
        (60, "good"),
        (59.9, "moderate"),
        (40, "moderate"),
        (39.9, "poor"),
        (0, "poor"),
    ],
)
def test_score_class_boundaries(score, band):
    assert score_class(score) == band


def test_format_display_date():
    assert format_display_date("2024-03-05T10:00:00Z") == "05 Mar 2024"
    assert format_display_date("not a date") == "not a date"
    assert format_display_date(None) == "N/A"


def test_disaster_report_sections_and_placeholders():
    view = render_report(
        "disaster",
        {
            "createdAt": "2024-01-02T00:00:00Z",
            "deadLoad": 1200.456,
            "totalLoad": 2500,
            "earthquakeSafetyScore": 72,
            "softStoryDetected": True,
            "vortexSheddingRisk": "High",
        },
    )
    assert view.section_titles == [
        "Load Analysis",
        "Structural Recommendations",
        "Earthquake Analysis",
        "Flood Analysis",
        "Wind/Cyclone Analysis",
    ]
    loads = view.section("Load Analysis").of_type(StatCard)
    assert loads[0].value == "1200.46 kN"
    assert loads[1].value == "N/A"
    assert loads[-1].highlight is True

    quake = view.section("Earthquake Analysis")
    score = quake.of_type(ScoreCard)[0]
    assert score.band == "good"
    soft_story = quake.of_type(InfoItem)[-1]
    assert soft_story.value == "Yes - Critical!"
    assert soft_story.tone == "danger"

    wind = view.section("Wind/Cyclone Analysis").of_type(InfoItem)[0]
    assert wind.tone == "high"
    assert view.date_display == "02 Jan 2024"


def test_vastu_report_omits_empty_lists():
    view = render_report("vastu", {"vastuComplianceScore": 35, "violations": [], "corrections": None})
    assert "Violations Detected" not in view.section_titles
    assert "Recommended Corrections" not in view.section_titles
    assert view.section("Vastu Compliance").of_type(ScoreCard)[0].band == "poor"


def test_vastu_violation_becomes_one_alert():
    view = render_report(
        "vastu",
        {
            "violations": [
                {
                    "severity": "High",
                    "category": "Entrance",
                    "description": "South-west entrance",
                    "impact": "Reduced prosperity",
                }
            ],
            "corrections": [{"priority": "high", "violation": "Entrance", "solution": "Move to NE"}],
        },
    )
    alerts = view.section("Violations Detected").blocks
    assert len(alerts) == 1
    alert = alerts[0]
    assert isinstance(alert, Alert)
    assert alert.severity == "high"
    assert alert.parts == ("Entrance", "South-west entrance", "Reduced prosperity")
    assert view.section("Recommended Corrections").blocks == [
        CorrectionItem("high", "Entrance", "Move to NE")
    ]


def test_final_report_recommendations_only_when_present():
    bare = render_report("final", {"overallSafetyScore": 81})
    assert "Final Recommendations" not in bare.section_titles
    assert bare.badges == []

    view = render_report(
        "final",
        {
            "reportStatus": "completed",
            "generatedAt": "2024-06-01T00:00:00Z",
            "surveySummary": {"location": {"lat": 12.5, "lng": 77.25}},
            "finalRecommendations": {"structural": ["Use M25 concrete"], "vastu": []},
        },
    )
    recs = view.section("Final Recommendations").of_type(BulletList)
    assert [r.title for r in recs] == ["Structural"]
    assert view.badges[0].label == "completed"
    location = view.section("Survey Summary").of_type(InfoItem)[0]
    assert location.value == "12.5, 77.25"


def test_unknown_report_kind():
    with pytest.raises(ValueError):
        render_report("structural", {})


SURVEYS = [
    {"id": "older-survey-id", "latitude": 1.5, "longitude": 2.5, "soilType": "sandy", "createdAt": "2024-01-01"},
    {"id": "newer-survey-id", "latitude": 3, "longitude": 4, "soilType": "clay", "createdAt": "2024-05-01"},
]


def test_survey_list_and_options():
    assert render_survey_list([]) == []
    cards = render_survey_list(SURVEYS)
    assert cards[0].title == "Survey older-su"

    options = survey_options(SURVEYS, selected_id="newer-survey-id")
    assert options[0].value == ""
    assert options[0].label == "-- Select Survey --"
    assert not options[0].selected
    assert [o.value for o in options if o.selected] == ["newer-survey-id"]
    assert options[1].label == "1.5, 2.5 - sandy"


def test_surveys_frame_sorted_newest_first():
    frame = surveys_frame(SURVEYS)
    assert list(frame["ID"]) == ["newer-survey-id", "older-survey-id"]
    assert surveys_frame([]).empty
