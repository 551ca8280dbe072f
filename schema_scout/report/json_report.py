# schema_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта SchemaScout.

Сериализация объекта ScanRecord в файл.
"""
import json
from pathlib import Path

from schema_scout.models import ScanRecord


def render_json(record: ScanRecord, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет ScanRecord в формате JSON по указанному пути.

    :param record: результат анализа страницы или сайта
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from schema_scout.report.json_report import render_json
    report_path = render_json(record, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(record.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
