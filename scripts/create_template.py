"""
Build the product selection template and placeholder image.

Writes assets/product_selection.docx and assets/no-image.png. The template
path is read from settings.template_path at render time, so run this once
per deploy (or after a layout change).

Usage:
    python scripts/create_template.py
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from io import BytesIO
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from services.image_service import make_placeholder_png

ASSETS_DIR = Path(__file__).parent.parent / "assets"

COLUMNS = ["Image", "Code", "Description", "Product Details", "Quantity", "Notes", "Link"]

ITEM_CELLS = [
    "{{ item.image }}",
    "{{ item.code }}",
    "{{ item.description }}",
    "{{ item.product_details }}",
    "{{ item.quantity }}",
    "{{ item.notes }}",
    "{{ item.link_marker }}",
]

HEADER_FIELDS = [
    ("Address", "{{ address }}"),
    ("Date", "{{ date }}"),
    ("Contact", "{{ contact_name }}"),
    ("Company", "{{ company }}"),
    ("Phone", "{{ phone_number }}"),
    ("Email", "{{ email }}"),
]


def _control_row(table, tag: str):
    """Row holding only a {%tr %} tag; docxtpl replaces the whole row."""
    row = table.add_row()
    row.cells[0].text = tag
    return row


def build_template() -> Document:
    """
    Product selection layout.

    Table rows: header, category loop, category name, item loop, item,
    two loop ends.
    """
    document = Document()

    title = document.add_paragraph()
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = title.add_run("PRODUCT SELECTION")
    run.bold = True
    run.font.size = Pt(18)

    for label, placeholder in HEADER_FIELDS:
        paragraph = document.add_paragraph()
        paragraph.add_run(f"{label}: ").bold = True
        paragraph.add_run(placeholder)

    table = document.add_table(rows=1, cols=len(COLUMNS))
    table.style = "Table Grid"
    for cell, heading in zip(table.rows[0].cells, COLUMNS):
        cell.text = ""
        heading_run = cell.paragraphs[0].add_run(heading)
        heading_run.bold = True

    _control_row(table, "{%tr for category in categories %}")

    category_row = table.add_row()
    category_run = category_row.cells[0].paragraphs[0].add_run("{{ category.name }}")
    category_run.bold = True
    category_run.font.color.rgb = RGBColor(0x1F, 0x3A, 0x5F)

    _control_row(table, "{%tr for item in category.items %}")

    item_row = table.add_row()
    for cell, placeholder in zip(item_row.cells, ITEM_CELLS):
        cell.text = placeholder

    _control_row(table, "{%tr endfor %}")
    _control_row(table, "{%tr endfor %}")

    return document


def build_template_bytes() -> bytes:
    output = BytesIO()
    build_template().save(output)
    return output.getvalue()


def main():
    ASSETS_DIR.mkdir(exist_ok=True)

    template_path = ASSETS_DIR / "product_selection.docx"
    template_path.write_bytes(build_template_bytes())
    print(f"[OK] Template written: {template_path}")

    placeholder_path = ASSETS_DIR / "no-image.png"
    placeholder_path.write_bytes(make_placeholder_png())
    print(f"[OK] Placeholder written: {placeholder_path}")


if __name__ == "__main__":
    main()
