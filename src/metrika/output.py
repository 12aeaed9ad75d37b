"""Output writer for report results.

Writes JSON files to the output directory structure:
  {output_dir}/{counter_id}/{report}_{date1}_{date2}.json

Each file includes metadata: fetch_timestamp, report, counter_id, version.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from metrika import __version__
from metrika.models import ReportResult


def write_report(
    result: ReportResult,
    counter_id: str,
    output_dir: str,
) -> Path:
    """Write a report result to a JSON file.

    Args:
        result: The report result to persist.
        counter_id: Metrika counter id, used as a sub-directory.
        output_dir: Base output directory path.

    Returns:
        Path to the written file.
    """
    out_path = Path(output_dir) / counter_id
    out_path.mkdir(parents=True, exist_ok=True)

    if result.request is not None:
        date1, date2 = result.request.date_range.as_strings()
    else:
        date1 = str(result.query.get("date1", "na"))
        date2 = str(result.query.get("date2", "na"))

    envelope: dict[str, Any] = {
        "metadata": {
            "fetch_timestamp": datetime.now(UTC).isoformat(),
            "report": result.report_key,
            "counter_id": counter_id,
            "from_cache": result.from_cache,
            "version": __version__,
        },
        "data": result.to_dict(),
    }

    file_path = out_path / f"{result.report_key}_{date1}_{date2}.json"
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(envelope, f, ensure_ascii=False, indent=2, default=str)

    return file_path
