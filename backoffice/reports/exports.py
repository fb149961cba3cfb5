# backoffice/reports/exports.py

import io
from datetime import datetime

import pandas as pd
from docx import Document
from flask import Response, stream_with_context
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph

from backoffice.exceptions import ValidationError
from backoffice.utils import format_timestamp


MIMETYPES = {
    'csv': 'text/csv',
    'xlsx': (
        "application/vnd.openxmlformats-officedocument"
        ".spreadsheetml.sheet"
    ),
    'pdf': 'application/pdf',
    'docx': (
        "application/vnd.openxmlformats-officedocument"
        ".wordprocessingml.document"
    ),
}


def _generated_on():
    timestamp = format_timestamp(datetime.utcnow())
    return f"Generated on: {timestamp.strftime('%Y-%m-%d %H:%M')}"


def generate_csv(data):
    """Generate CSV file as a stream.

    Args:
        data: List of dictionaries, one per row

    Returns:
        BytesIO: CSV file stream
    """
    output = io.BytesIO()
    pd.DataFrame(data).to_csv(output, index=False, encoding='utf-8')
    output.seek(0)
    return output


def generate_excel(data, sheet_name='Report'):
    """Generate Excel file as a stream.

    Args:
        data: List of dictionaries, one per row
        sheet_name: Worksheet title

    Returns:
        BytesIO: Excel file stream
    """
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df = pd.DataFrame(data)
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        workbook = writer.book
        worksheet = writer.sheets[sheet_name]

        header_format = workbook.add_format({
            'bold': True,
            'bg_color': '#4F81BD',
            'font_color': 'white',
            'border': 1
        })

        for col_num, value in enumerate(df.columns.values):
            worksheet.write(0, col_num, value, header_format)
            longest = df[value].astype(str).apply(len).max() if len(df) else 0
            worksheet.set_column(col_num, col_num, max(longest, len(value)) + 2)

    output.seek(0)
    return output


def generate_pdf(data, title):
    """Generate PDF file as a stream.

    Args:
        data: List of dictionaries, one per row; keys become the headers
        title: Report title

    Returns:
        BytesIO: PDF file stream
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(letter),
        rightMargin=36,
        leftMargin=36,
        topMargin=54,
        bottomMargin=54
    )

    styles = getSampleStyleSheet()
    elements = [
        Paragraph(title, styles['Title']),
        Paragraph(_generated_on(), styles['Normal']),
    ]

    if data:
        headers = list(data[0].keys())
        table_data = [headers] + [[str(row[h]) for h in headers] for row in data]
        table = Table(table_data)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ]))
        elements.append(table)

    doc.build(elements)
    buffer.seek(0)
    return buffer


def generate_word(data, title):
    """Generate Word document as a stream.

    Args:
        data: List of dictionaries, one per row; keys become the headers
        title: Report title

    Returns:
        BytesIO: Word document stream
    """
    doc = Document()
    doc.add_heading(title, 0)
    doc.add_paragraph(_generated_on())

    if data:
        headers = list(data[0].keys())
        table = doc.add_table(rows=1, cols=len(headers))
        table.style = 'Table Grid'
        for i, header in enumerate(headers):
            table.rows[0].cells[i].text = header
        for row in data:
            cells = table.add_row().cells
            for i, header in enumerate(headers):
                cells[i].text = str(row[header])

    buffer = io.BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer


def export_response(data, fmt, filename, title='Report'):
    """Stream ``data`` as a download in the requested format.

    Raises:
        ValidationError: unsupported format
    """
    if fmt == 'csv':
        stream = generate_csv(data)
    elif fmt == 'xlsx':
        stream = generate_excel(data, sheet_name=title[:31])
    elif fmt == 'pdf':
        stream = generate_pdf(data, title)
    elif fmt == 'docx':
        stream = generate_word(data, title)
    else:
        raise ValidationError(f"Format not supported: {fmt}")

    return Response(
        stream_with_context(stream),
        mimetype=MIMETYPES[fmt],
        headers={
            "Content-Disposition": f"attachment; filename={filename}.{fmt}"
        }
    )
