# File: schema_scout/report/__init__.py
"""schema_scout.report: генерация отчётов (JSON и HTML) по ScanRecord для CLI и тестов."""

from schema_scout.report.html_report import DEFAULT_TEMPLATE_DIR, render_html
from schema_scout.report.json_report import render_json

__all__ = ["render_json", "render_html", "DEFAULT_TEMPLATE_DIR"]
