"""Example: drive the service layer directly, without Flask.

Prints one month of attendance for an organization and its export rows.
"""

import importlib
import sys

from config import get_settings_module

from attendance_engine.container import build_container
from attendance_engine.reports.export import build_export_rows


def main(organization_id: str, year: int, month: int) -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    data = container.report_service.build_monthly_report(
        organization_id=organization_id, year=year, month=month
    )
    print(data.summary)
    for row in build_export_rows(data.reports):
        print(row)


if __name__ == "__main__":
    main(sys.argv[1], int(sys.argv[2]), int(sys.argv[3]))
