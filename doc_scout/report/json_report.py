# doc_scout/report/json_report.py

"""
JSON report for DocScout: serialises a :class:`ScanReport` to a file.
"""
from pathlib import Path

from doc_scout.aggregator import ScanReport


def render_json(report: ScanReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *report* as JSON at *output_path*.

    :param report: ScanReport of one page
    :param output_path: path of the JSON file
    :return: Path of the saved file

    Example:
    ```python
    from doc_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/report.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding="utf-8")
    return output
