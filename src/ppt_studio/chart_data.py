"""Loading of data files referenced by chart slides."""

import csv
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _coerce(value: str) -> Any:
    """Turn numeric CSV cells into numbers, leave the rest as text."""
    text = value.strip()
    try:
        number = float(text)
    except ValueError:
        return text
    return int(number) if number.is_integer() and '.' not in text else number


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def parse_csv(content: str) -> list[dict[str, Any]]:
    """Parse CSV text with a header row into a list of row dicts."""
    reader = csv.reader(content.strip().splitlines())
    rows = list(reader)
    if len(rows) < 2:
        return []
    headers = [h.strip() for h in rows[0]]
    return [
        {header: _coerce(cells[i]) if i < len(cells) else '' for i, header in enumerate(headers)}
        for cells in rows[1:]
    ]


def load_data_file(file_path: Path) -> Any:
    """Load a .json or .csv data file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the extension is not supported.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    suffix = file_path.suffix.lower()
    content = file_path.read_text(encoding='utf-8')
    if suffix == '.json':
        return json.loads(content)
    if suffix == '.csv':
        return parse_csv(content)
    raise ValueError(f"Unsupported file format: {suffix}")


def _line_data(data: Any, x_column: str | None = None, y_column: str | None = None) -> dict[str, Any]:
    if isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, dict):
            keys = list(first)
            label_key = x_column if x_column and y_column else keys[0]
            value_key = y_column if x_column and y_column else (keys[1] if len(keys) > 1 else keys[0])
            return {
                'labels': [str(row.get(label_key)) for row in data],
                'values': [_to_number(row.get(value_key)) for row in data],
            }
        if isinstance(first, (int, float)):
            return {'labels': [str(i + 1) for i in range(len(data))], 'values': list(data)}

    if isinstance(data, dict) and 'labels' in data and 'values' in data:
        return {'labels': data['labels'], 'values': data['values']}
    return {'labels': [], 'values': []}


def _bar_data(data: Any, x_column: str | None = None, y_column: str | None = None,
              series_column: str | None = None) -> dict[str, Any]:
    if isinstance(data, list):
        if series_column and data and isinstance(data[0], dict) and data[0].get(series_column):
            labels: list[Any] = []
            series: dict[Any, dict[Any, float]] = {}
            for row in data:
                cells = list(row.values())
                label = row.get(x_column) if x_column else cells[0]
                value = _to_number(row.get(y_column) if y_column else (cells[1] if len(cells) > 1 else 0))
                if label not in labels:
                    labels.append(label)
                series.setdefault(row[series_column], {})[label] = value
            return {
                'labels': labels,
                'series': [
                    {'name': name, 'values': [values.get(label, 0) for label in labels]}
                    for name, values in series.items()
                ],
            }

        result = _line_data(data, x_column, y_column)
        return {'labels': result['labels'], 'values': result['values'], 'series': None}

    if isinstance(data, dict) and 'labels' in data and 'values' in data:
        return {'labels': data['labels'], 'values': data['values'], 'series': data.get('series')}
    return {'labels': [], 'values': [], 'series': None}


def _pie_data(data: Any, label_column: str | None = None, value_column: str | None = None) -> dict[str, Any]:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        keys = list(data[0])
        label_key = label_column or keys[0]
        value_key = value_column or (keys[1] if len(keys) > 1 else keys[0])
        return {
            'segments': [
                {'label': str(row.get(label_key)), 'value': _to_number(row.get(value_key))}
                for row in data
            ]
        }

    if isinstance(data, dict):
        if 'segments' in data:
            return {'segments': data['segments']}
        if 'labels' in data and 'values' in data:
            values = data['values']
            return {
                'segments': [
                    {'label': label, 'value': values[i] if i < len(values) else 0}
                    for i, label in enumerate(data['labels'])
                ]
            }
    return {'segments': []}


def get_chart_data(data: Any, chart_type: str, x_column: str | None = None,
                   y_column: str | None = None, series_column: str | None = None,
                   label_column: str | None = None, value_column: str | None = None) -> dict[str, Any]:
    """Shape loaded data for a chart type.

    Args:
        data: Rows (list of dicts), a list of numbers, or a dict with
            labels/values/segments.
        chart_type: line, bar or pie (the ``-chart`` suffix is accepted).

    Returns:
        labels/values for line, labels/values/series for bar, segments for pie.

    Raises:
        ValueError: If the chart type is unknown.
    """
    if chart_type in ('line', 'line-chart'):
        return _line_data(data, x_column, y_column)
    if chart_type in ('bar', 'bar-chart'):
        return _bar_data(data, x_column, y_column, series_column)
    if chart_type in ('pie', 'pie-chart'):
        return _pie_data(data, label_column, value_column)
    raise ValueError(f"Unknown chart type: {chart_type}")


def load_data_for_slide(data_dir: Path, data_source: str, chart_type: str, **options: Any) -> dict[str, Any]:
    """Load sources/data/<data_source> and shape it for chart_type."""
    data = load_data_file(Path(data_dir) / data_source)
    logger.debug(f"Loaded chart data from {data_source} for {chart_type}")
    return get_chart_data(data, chart_type, **options)
