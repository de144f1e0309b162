import pytest

from survey_app.exceptions import RenderError
from survey_app.services.analysis_service import AnalysisReport, MergedQuestion, Overview, build_analysis
from survey_app.services.chart_service import (
    create_department_comparison_chart,
    create_question_sentiment_chart,
    create_response_distribution_chart,
    create_satisfaction_pie_chart,
    department_comparison_data,
    pie_chart_labels,
    top_sentiment_questions,
)
from survey_app.services.classifier import AnswerType

PNG_SIGNATURE = b"\x89PNG"

ALL_CHARTS = [
    create_satisfaction_pie_chart,
    create_department_comparison_chart,
    create_response_distribution_chart,
    create_question_sentiment_chart,
]


@pytest.mark.parametrize("render", ALL_CHARTS)
def test_charts_render_png(render, sample_records):
    buf = render(build_analysis(sample_records))
    assert buf.read(4) == PNG_SIGNATURE


@pytest.mark.parametrize("render", ALL_CHARTS)
def test_charts_refuse_empty_report(render):
    with pytest.raises(RenderError):
        render(build_analysis([]))


def test_text_only_report_has_no_sentiment_chart(make_record):
    report = build_analysis([make_record("Eng", [("Comments", "All good")])])

    with pytest.raises(RenderError):
        create_satisfaction_pie_chart(report)
    with pytest.raises(RenderError):
        create_question_sentiment_chart(report)
    assert create_department_comparison_chart(report).read(4) == PNG_SIGNATURE


def test_plotting_failures_become_render_errors(sample_records, monkeypatch):
    def broken(*args, **kwargs):
        raise ValueError("backend exploded")

    monkeypatch.setattr("survey_app.services.chart_service.plt.subplots", broken)
    with pytest.raises(RenderError, match="backend exploded"):
        create_satisfaction_pie_chart(build_analysis(sample_records))


def test_pie_labels_use_bucket_total():
    labels = pie_chart_labels({
        "Very Satisfied": 3,
        "Satisfied": 1,
        "Neutral": 0,
        "Dissatisfied": 0,
        "Very Dissatisfied": 0,
    })
    assert labels[0] == "Very Satisfied: 3 (75.0%)"
    assert labels[1] == "Satisfied: 1 (25.0%)"
    assert labels[2] == "Neutral: 0 (0.0%)"


def test_department_comparison_series(sample_records):
    departments, satisfaction, dissatisfaction, response_rates = department_comparison_data(
        build_analysis(sample_records)
    )
    assert departments == ["Engineering", "Operations"]
    assert len(satisfaction) == len(dissatisfaction) == 2
    assert response_rates == [100.0, 75.0]


def _star_question(name, volume):
    return MergedQuestion(
        question=name,
        type=AnswerType.STAR_RATING,
        responses={"5 stars": volume},
        total_response_count=volume,
    )


def test_top_sentiment_questions_by_volume_with_stable_ties():
    questions = [_star_question(f"Q{i}", volume) for i, volume in enumerate([1, 5, 3, 5, 2, 1, 1, 4, 1, 1, 1, 1])]
    questions.append(MergedQuestion(question="Comments", type=AnswerType.TEXT,
                                    responses={"Nice": 50}, total_response_count=50))
    report = AnalysisReport(overview=Overview(), questions=questions)

    top = top_sentiment_questions(report)
    names = [q.question for q, _, _ in top]

    assert len(top) == 10
    assert names[:5] == ["Q1", "Q3", "Q7", "Q2", "Q4"]
    assert names[5:] == ["Q0", "Q5", "Q6", "Q8", "Q9"]
    assert all(score == 100.0 for _, score, _ in top)
