"""
Chart rendering for the survey analysis report.

Every chart function takes an :class:`AnalysisReport` and returns a PNG in a
``BytesIO`` buffer of fixed size. When there is nothing to draw, or matplotlib
fails, the function raises :class:`RenderError` so the caller can put a text
placeholder in the chart's place.
"""

import io
from functools import wraps

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Patch

import config
from survey_app.exceptions import RenderError
from survey_app.services.classifier import SENTIMENT_BUCKETS, AnswerType
from survey_app.services.metrics import (
    SENTIMENT_BANDS,
    VERY_NEGATIVE_BAND,
    aggregate_satisfaction_levels,
    calculate_department_satisfaction_metrics,
    calculate_response_rate,
    calculate_sentiment_score,
    department_response_distribution,
    sentiment_band,
)


# Very Satisfied .. Very Dissatisfied
BUCKET_COLORS = ['#4bc0c0', '#36a2eb', '#ffce56', '#ff9f40', '#ff6384']
SATISFACTION_COLOR = '#4bc0c0'
DISSATISFACTION_COLOR = '#ff6384'
RESPONSE_RATE_COLOR = '#36a2eb'

PIE_SIZE = (9, 6)
BAR_SIZE = (10, 6)
TALL_SIZE = (10, 7.5)

QUESTION_LABEL_LIMIT = 30


def _renders(func):
    """Turn any plotting failure into a RenderError."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RenderError:
            raise
        except Exception as e:
            plt.close('all')
            raise RenderError(f"{func.__name__} failed: {e}") from e
    return wrapper


def _to_png(fig):
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=config.CHART_DPI)
    plt.close(fig)
    buf.seek(0)
    return buf


def _truncate(text, limit=QUESTION_LABEL_LIMIT):
    return text if len(text) <= limit else text[:limit - 3] + "..."


def pie_chart_labels(satisfaction_data):
    """Legend labels ``"{category}: {count} ({percentage}%)"``."""
    total = sum(satisfaction_data.values())
    labels = []
    for category, count in satisfaction_data.items():
        percentage = (count / total * 100) if total else 0.0
        labels.append(f"{category}: {count} ({percentage:.1f}%)")
    return labels


@_renders
def create_satisfaction_pie_chart(report):
    """Pie chart of the five sentiment buckets over all MCQ answers."""
    satisfaction_data = aggregate_satisfaction_levels(report)
    if sum(satisfaction_data.values()) == 0:
        raise RenderError("No multiple-choice satisfaction responses to plot")

    fig, ax = plt.subplots(figsize=PIE_SIZE)
    wedges, _ = ax.pie(
        list(satisfaction_data.values()),
        colors=BUCKET_COLORS,
        startangle=90,
        counterclock=False,
        wedgeprops={'edgecolor': 'white', 'linewidth': 1},
    )
    ax.legend(wedges, pie_chart_labels(satisfaction_data), loc='center left',
              bbox_to_anchor=(1.0, 0.5), fontsize=10, frameon=False)
    ax.set_title('Overall Satisfaction Distribution', fontsize=14)
    ax.axis('equal')
    fig.tight_layout()
    return _to_png(fig)


def department_comparison_data(report):
    """Department names with satisfaction, dissatisfaction and response-rate series."""
    departments = list(report.departments)
    satisfaction, dissatisfaction, response_rates = [], [], []
    for name in departments:
        dept = report.departments[name]
        metrics = calculate_department_satisfaction_metrics(dept)
        satisfaction.append(metrics.satisfaction)
        dissatisfaction.append(metrics.dissatisfaction)
        response_rates.append(calculate_response_rate(dept))
    return departments, satisfaction, dissatisfaction, response_rates


@_renders
def create_department_comparison_chart(report):
    """Grouped bars per department: satisfaction, dissatisfaction, response rate."""
    departments, satisfaction, dissatisfaction, response_rates = department_comparison_data(report)
    if not departments:
        raise RenderError("No departments to compare")

    width = 0.25
    positions = list(range(len(departments)))
    series = [
        ('Satisfaction Score', satisfaction, SATISFACTION_COLOR),
        ('Dissatisfaction Score', dissatisfaction, DISSATISFACTION_COLOR),
        ('Response Rate', response_rates, RESPONSE_RATE_COLOR),
    ]

    fig, ax = plt.subplots(figsize=BAR_SIZE)
    for offset, (label, values, color) in zip((-width, 0, width), series):
        bars = ax.bar([p + offset for p in positions], values, width,
                      label=label, color=color, edgecolor=color)
        for bar, value in zip(bars, values):
            ax.text(bar.get_x() + bar.get_width() / 2.0, bar.get_height(),
                    f'{value:.0f}', ha='center', va='bottom', fontsize=8)

    ax.set_xticks(positions)
    ax.set_xticklabels(departments, fontsize=9, rotation=20, ha='right')
    ax.set_ylim(0, 110)
    ax.set_ylabel('Score (%)', fontsize=11, fontweight='bold')
    ax.set_xlabel('Departments', fontsize=11, fontweight='bold')
    ax.set_title('Department Comparative Analysis', fontsize=14, fontweight='bold')
    ax.legend(loc='upper center', ncol=3, fontsize=9)
    ax.grid(True, axis='y', linestyle='--', alpha=0.7)
    fig.tight_layout()
    return _to_png(fig)


@_renders
def create_response_distribution_chart(report):
    """100% stacked bars of sentiment buckets per department (MCQ only)."""
    departments = list(report.departments)
    if not departments:
        raise RenderError("No departments to plot")

    distributions = [department_response_distribution(report.departments[name]) for name in departments]
    positions = list(range(len(departments)))
    bottoms = [0.0] * len(departments)

    fig, ax = plt.subplots(figsize=BAR_SIZE)
    for bucket, color in zip(SENTIMENT_BUCKETS, BUCKET_COLORS):
        values = [dist[bucket] for dist in distributions]
        ax.bar(positions, values, 0.6, bottom=bottoms, label=bucket, color=color, edgecolor='white')
        bottoms = [b + v for b, v in zip(bottoms, values)]

    ax.set_xticks(positions)
    ax.set_xticklabels(departments, fontsize=9, rotation=20, ha='right')
    ax.set_ylim(0, 100)
    ax.set_ylabel('Response Distribution (%)', fontsize=11, fontweight='bold')
    ax.set_xlabel('Departments', fontsize=11, fontweight='bold')
    ax.set_title('Department Response Distribution Analysis', fontsize=14, fontweight='bold')
    ax.legend(loc='upper center', bbox_to_anchor=(0.5, -0.2), ncol=5, fontsize=8, frameon=False)
    fig.tight_layout()
    return _to_png(fig)


def top_sentiment_questions(report, limit=None):
    """The most-answered MCQ/star questions with their sentiment scores.

    Returns ``(question, score, volume)`` tuples; the sort is stable so equal
    volumes keep their encounter order.
    """
    limit = config.TOP_SENTIMENT_QUESTIONS if limit is None else limit
    scored = []
    for question in report.questions:
        if question.type not in (AnswerType.MCQ, AnswerType.STAR_RATING):
            continue
        score, volume = calculate_sentiment_score(question)
        scored.append((question, score, volume))
    scored.sort(key=lambda item: item[2], reverse=True)
    return scored[:limit]


@_renders
def create_question_sentiment_chart(report):
    """Horizontal bars of sentiment (-100..100) for the top questions."""
    top_questions = top_sentiment_questions(report)
    if not top_questions:
        raise RenderError("No multiple-choice or star-rating questions to score")

    labels = [_truncate(q.question) for q, _, _ in top_questions]
    scores = [score for _, score, _ in top_questions]
    colors = [sentiment_band(score)[1] for score in scores]

    fig, ax = plt.subplots(figsize=TALL_SIZE)
    positions = list(range(len(labels)))
    ax.barh(positions, scores, color=colors, edgecolor='#00000020')
    ax.set_yticks(positions)
    ax.set_yticklabels(labels, fontsize=9)
    ax.invert_yaxis()
    ax.set_xlim(-100, 100)
    ax.axvline(0, color='grey', linewidth=0.8)
    ax.set_xlabel('Sentiment Score (-100 to +100)', fontsize=11, fontweight='bold')
    ax.set_title('Question Sentiment Analysis', fontsize=14, fontweight='bold')

    bands = [(name, color) for _, name, color in SENTIMENT_BANDS] + [VERY_NEGATIVE_BAND]
    ax.legend(handles=[Patch(facecolor=color, edgecolor='black', label=name) for name, color in bands],
              loc='upper center', bbox_to_anchor=(0.5, -0.12), ncol=5, fontsize=8, frameon=False)
    ax.grid(True, axis='x', linestyle='--', alpha=0.7)
    fig.tight_layout()
    return _to_png(fig)
