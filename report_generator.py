import os
import sys
import uuid
import logging
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image, PageBreak, CondPageBreak
)

import config
from survey_app.exceptions import AssemblyError, RenderError
from survey_app.services.analysis_service import build_analysis
from survey_app.services.chart_service import (
    create_department_comparison_chart,
    create_question_sentiment_chart,
    create_response_distribution_chart,
    create_satisfaction_pie_chart,
)
from survey_app.services.classifier import AnswerType, format_stars, parse_stars
from survey_app.services.csv_service import read_responses
from survey_app.services.metrics import (
    NOT_AVAILABLE,
    calculate_department_mcq_satisfaction,
    calculate_department_satisfaction_metrics,
    calculate_response_rate,
)

logger = logging.getLogger(__name__)

REPORT_TITLE = "Survey Analysis Report"
NO_SENTIMENT_DATA = "No significant sentiment data available for analysis."

# (anchor, heading) in document order
SECTIONS = [
    ("executive-summary", "1. Executive Summary"),
    ("department-analysis", "2. Department Analysis"),
    ("question-analysis", "3. Question Analysis"),
    ("visualizations", "4. Visualizations"),
]

# (title, renderer, placeholder, max height in points)
VISUALIZATIONS = [
    ("Satisfaction Distribution", create_satisfaction_pie_chart,
     "No satisfaction responses available for this chart.", 4.5 * inch),
    ("Department Comparative Analysis", create_department_comparison_chart,
     "No department data available for this chart.", 4.5 * inch),
    ("Department Response Distribution Analysis", create_response_distribution_chart,
     "No department data available for this chart.", 4.5 * inch),
    ("Question Sentiment Analysis", create_question_sentiment_chart,
     NO_SENTIMENT_DATA, 6 * inch),
]


class SurveyReportTemplate(SimpleDocTemplate):
    """
    Document template that adds a PDF outline entry for every section heading.
    """
    def __init__(self, filename, **kw):
        SimpleDocTemplate.__init__(self, filename, **kw)
        self._outline_count = 0

    def afterFlowable(self, flowable):
        if isinstance(flowable, Paragraph) and flowable.style.name == 'SectionHeading':
            key = f"outline-{self._outline_count}"
            self._outline_count += 1
            self.canv.bookmarkPage(key)
            self.canv.addOutlineEntry(flowable.getPlainText(), key, level=0)


class FooterCanvas:
    def __init__(self, canvas, doc):
        self.canvas = canvas
        self.doc = doc

    def draw_footer(self):
        self.canvas.saveState()
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        self.canvas.drawString(25, 20, REPORT_TITLE)

        page_text = f"Page {self.doc.page}"
        right_text_width = self.canvas.stringWidth(page_text, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_text_width - 25, 20, page_text)

        self.canvas.restoreState()

    def draw_border(self):
        self.canvas.saveState()
        self.canvas.setLineWidth(2)
        width, height = self.doc.pagesize
        self.canvas.rect(50, 50, width - 100, height - 100)
        self.canvas.restoreState()


def _build_styles():
    styles = getSampleStyleSheet()
    return {
        'cover_title': ParagraphStyle(
            'CoverTitle',
            parent=styles['Title'],
            fontSize=28,
            leading=34,
            alignment=1,
            spaceBefore=3 * inch,
            spaceAfter=20
        ),
        'cover_info': ParagraphStyle(
            'CoverInfo',
            parent=styles['Normal'],
            fontSize=14,
            alignment=1
        ),
        'toc_title': ParagraphStyle(
            'TocTitle',
            parent=styles['Heading1'],
            fontSize=20,
            alignment=1,
            spaceAfter=16
        ),
        'toc_entry': ParagraphStyle(
            'TocEntry',
            parent=styles['Normal'],
            fontSize=12,
            leading=20
        ),
        'section': ParagraphStyle(
            'SectionHeading',
            parent=styles['Heading1'],
            fontSize=20,
            alignment=1,
            spaceAfter=12
        ),
        'subsection': ParagraphStyle(
            'SubHeading',
            parent=styles['Heading2'],
            fontSize=16,
            spaceBefore=6,
            spaceAfter=6
        ),
        'chart_title': ParagraphStyle(
            'ChartTitle',
            parent=styles['Heading2'],
            fontSize=16,
            alignment=1,
            spaceAfter=10
        ),
        'question': ParagraphStyle(
            'QuestionStyle',
            parent=styles['Heading3'],
            fontSize=13,
            spaceBefore=8,
            spaceAfter=4
        ),
        'body': ParagraphStyle(
            'BodyStyle',
            parent=styles['Normal'],
            fontSize=11,
            leading=15
        ),
        'label': ParagraphStyle(
            'LabelStyle',
            parent=styles['Normal'],
            fontSize=11,
            leading=15,
            fontName='Helvetica-Bold',
            spaceBefore=4
        ),
        'detail': ParagraphStyle(
            'DetailStyle',
            parent=styles['Normal'],
            fontSize=10,
            leading=13,
            leftIndent=15
        ),
        'placeholder': ParagraphStyle(
            'PlaceholderStyle',
            parent=styles['Normal'],
            fontSize=11,
            alignment=1,
            textColor=colors.gray,
            spaceBefore=20
        ),
    }


def _para(text, style):
    return Paragraph(escape(str(text)), style)


def _percent(count, total):
    return f"{(count / total * 100) if total > 0 else 0.0:.1f}"


def key_findings(report):
    """Bullet sentences for the executive summary."""
    if not report.departments:
        return ["No responses available for analysis."]

    busiest = None
    for name, dept in report.departments.items():
        if busiest is None or dept.total_responses > report.departments[busiest].total_responses:
            busiest = name

    overview = report.overview
    findings = [
        f"• {busiest} had the highest response rate with "
        f"{report.departments[busiest].total_responses} responses.",
        f"• Overall satisfaction across all departments is {overview.overall_satisfaction}%.",
    ]
    if overview.highest_dissatisfaction_department == NOT_AVAILABLE:
        findings.append("• No department reported dissatisfaction.")
    else:
        findings.append(
            f"• {overview.highest_dissatisfaction_department} department shows the highest "
            f"dissatisfaction at {overview.highest_dissatisfaction_rate}%."
        )
    return findings


def question_detail_lines(question):
    """Type-specific detail lines for one merged question."""
    total = question.total_response_count

    if question.type in (AnswerType.MCQ, AnswerType.CHECKBOX):
        lines = ["Option Selection Counts:"]
        for option, count in sorted(question.responses.items(), key=lambda item: item[1], reverse=True):
            lines.append(f"• {option}: {count} selections ({_percent(count, total)}%)")
        return lines

    if question.type is AnswerType.STAR_RATING:
        lines = ["Star Rating Distribution:"]
        for stars in range(5, 0, -1):
            count = question.responses.get(format_stars(stars), 0)
            suffix = "s" if stars != 1 else ""
            lines.append(f"{stars} star{suffix}: {count} responses ({_percent(count, total)}%)")

        star_total = 0
        rated = 0
        for response, count in question.responses.items():
            stars = parse_stars(response)
            if stars is not None:
                star_total += stars * count
                rated += count
        average = f"{star_total / rated:.1f}" if rated else NOT_AVAILABLE
        lines.append(f"Average Rating: {average}/5.0")
        return lines

    lines = ["Text Responses:"]
    samples = list(question.responses)
    for response in samples[:config.TEXT_SAMPLE_LIMIT]:
        lines.append(f'• "{response}"')
    if len(samples) > config.TEXT_SAMPLE_LIMIT:
        lines.append(f"... and {len(samples) - config.TEXT_SAMPLE_LIMIT} more responses")
    return lines


def _section_heading(anchor, title, style):
    return Paragraph(f'<a name="{anchor}"/>{escape(title)}', style)


def _cover(styles, generated_on):
    return [
        _para(REPORT_TITLE, styles['cover_title']),
        _para(f"Generated on: {generated_on.month}/{generated_on.day}/{generated_on.year}", styles['cover_info']),
        PageBreak(),
    ]


def _table_of_contents(styles):
    elements = [_para("Table of Contents", styles['toc_title'])]
    for anchor, title in SECTIONS:
        elements.append(Paragraph(f'<a href="#{anchor}" color="blue">{escape(title)}</a>', styles['toc_entry']))
    elements.append(PageBreak())
    return elements


def _executive_summary(report, styles):
    overview = report.overview
    elements = [
        _section_heading(*SECTIONS[0], styles['section']),
        _para("Overview", styles['subsection']),
        _para(f"Total Responses: {overview.total_responses}", styles['body']),
        _para(f"Number of Departments: {overview.department_count}", styles['body']),
        _para(f"Overall Satisfaction: {overview.overall_satisfaction}%", styles['body']),
        _para(f"Overall Dissatisfaction: {overview.overall_dissatisfaction}%", styles['body']),
        _para(f"Department with Highest Dissatisfaction: {overview.highest_dissatisfaction_department}",
              styles['body']),
        Spacer(1, 20),
        _para("Key Findings", styles['subsection']),
    ]
    elements.extend(_para(finding, styles['body']) for finding in key_findings(report))
    elements.append(PageBreak())
    return elements


def _department_analysis(report, styles, doc_width):
    elements = [_section_heading(*SECTIONS[1], styles['section'])]
    if not report.departments:
        elements.append(_para("No department data available.", styles['body']))
        elements.append(PageBreak())
        return elements

    table_data = [['Department', 'Total\nResponses', 'Department\nSatisfaction',
                   'Satisfaction', 'Dissatisfaction', 'Response\nRate']]
    for name, dept in report.departments.items():
        mcq_satisfaction = calculate_department_mcq_satisfaction(dept)
        metrics = calculate_department_satisfaction_metrics(dept)
        table_data.append([
            Paragraph(escape(name), styles['body']),
            str(dept.total_responses),
            f"{mcq_satisfaction:.1f}%" if mcq_satisfaction is not None else NOT_AVAILABLE,
            f"{metrics.satisfaction}%",
            f"{metrics.dissatisfaction}%",
            f"{calculate_response_rate(dept):.1f}%",
        ])

    first_col = doc_width * 0.3
    table = Table(table_data, colWidths=[first_col] + [(doc_width - first_col) / 5.0] * 5, repeatRows=1)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(config.DEFAULT_SURVEY_COLOR)),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f2f4f8')]),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    elements.append(table)
    elements.append(PageBreak())
    return elements


def _question_analysis(report, styles):
    elements = [_section_heading(*SECTIONS[2], styles['section'])]
    if not report.questions:
        elements.append(_para("No question data available.", styles['body']))

    for index, question in enumerate(report.questions, start=1):
        elements.append(CondPageBreak(config.PAGE_BREAK_THRESHOLD))
        elements.append(_para(f"{index}. {question.question}", styles['question']))
        elements.append(_para("Department-wise Responses:", styles['label']))
        for dept, count in question.department_counts.items():
            elements.append(_para(f"{dept}: {count} responses", styles['detail']))

        detail = question_detail_lines(question)
        elements.append(_para(detail[0], styles['label']))
        elements.extend(_para(line, styles['detail']) for line in detail[1:])
        elements.append(Spacer(1, 10))
    return elements


def _chart_image(buf, max_width, max_height):
    img_width, img_height = ImageReader(buf).getSize()
    buf.seek(0)
    scale = min(max_width / img_width, max_height / img_height)
    return Image(buf, width=img_width * scale, height=img_height * scale)


def _visualizations(report, styles, doc_width):
    elements = [PageBreak(), _section_heading(*SECTIONS[3], styles['section'])]
    for i, (title, render, placeholder, max_height) in enumerate(VISUALIZATIONS):
        if i > 0:
            elements.append(PageBreak())
        elements.append(_para(title, styles['chart_title']))
        try:
            elements.append(_chart_image(render(report), doc_width, max_height))
        except RenderError as e:
            logger.warning(f"{title}: {e}")
            elements.append(_para(placeholder, styles['placeholder']))
    return elements


def build_report_pdf(report, output_path, generated_on=None):
    """
    Lay out *report* as a PDF at *output_path*.

    The document is built into a temporary file beside *output_path* and moved
    into place only once the build succeeds.
    """
    generated_on = generated_on or datetime.now()
    tmp_path = f"{output_path}.{uuid.uuid4().hex}.tmp"
    logger.info(f"Generating report: {output_path}")

    try:
        doc = SurveyReportTemplate(
            tmp_path,
            pagesize=A4,
            rightMargin=50,
            leftMargin=50,
            topMargin=60,
            bottomMargin=60,
            title=REPORT_TITLE,
            author="Survey Analysis System",
            subject="Survey Results and Analysis"
        )
        styles = _build_styles()

        elements = []
        elements.extend(_cover(styles, generated_on))
        elements.extend(_table_of_contents(styles))
        elements.extend(_executive_summary(report, styles))
        elements.extend(_department_analysis(report, styles, doc.width))
        elements.extend(_question_analysis(report, styles))
        elements.extend(_visualizations(report, styles, doc.width))

        def first_page(canvas, doc):
            page = FooterCanvas(canvas, doc)
            page.draw_border()
            page.draw_footer()

        def later_pages(canvas, doc):
            FooterCanvas(canvas, doc).draw_footer()

        doc.build(elements, onFirstPage=first_page, onLaterPages=later_pages)
        os.replace(tmp_path, output_path)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise AssemblyError(f"PDF generation failed: {e}") from e

    logger.info(f"Report saved: {output_path}")
    return output_path


def report_filename():
    return f"survey_analysis_{datetime.now():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:8]}.pdf"


def generate_analysis_report(csv_path, output_dir=None):
    """Read the response export at *csv_path* and return the path of its PDF report."""
    output_dir = output_dir or config.REPORTS_FOLDER
    os.makedirs(output_dir, exist_ok=True)

    records = read_responses(csv_path)
    report = build_analysis(records)
    return build_report_pdf(report, os.path.join(output_dir, report_filename()))


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python report_generator.py <responses.csv>")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    filepath = generate_analysis_report(sys.argv[1])
    logger.info(f"Report ready: {filepath}")
