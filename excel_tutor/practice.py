from __future__ import annotations

import csv
from pathlib import Path

# filename, header, rows
PRACTICE_DATA: dict[str, tuple[str, list[str], list[list[str]]]] = {
    "orientation": (
        "UnitA_Orientation_Practice.csv",
        ["Item", "Quantity"],
        [["Apples", "12"], ["Bananas", "8"], ["Oranges", "15"], ["Grapes", "20"]],
    ),
    "navigation": (
        "UnitA_Navigation_Practice.csv",
        ["Name", "Age", "City"],
        [
            ["John Smith", "45", "Seattle"],
            ["Mary Johnson", "52", "Portland"],
            ["Bob Wilson", "38", "Vancouver"],
            ["Susan Davis", "41", "Spokane"],
        ],
    ),
    "formatting": (
        "UnitA_Formatting_Practice.csv",
        ["Product", "Price", "In Stock"],
        [
            ["Laptop", "899.99", "Yes"],
            ["Mouse", "29.99", "No"],
            ["Keyboard", "79.99", "Yes"],
            ["Monitor", "299.99", "Yes"],
        ],
    ),
    "formulas1": (
        "UnitB_Formulas1_Practice.csv",
        ["Month", "Sales"],
        [["January", "1250"], ["February", "1380"], ["March", "1195"], ["April", "1425"], ["May", "1340"]],
    ),
    "autofill": (
        "UnitB_Autofill_Practice.csv",
        ["Week", "Orders"],
        [["Week 1", "45"], ["Week 2", "52"], ["Week 3", "48"], ["Week 4", "61"], ["Week 5", "55"]],
    ),
    "sortfilter": (
        "UnitB_Sort_Filter_Practice.csv",
        ["Employee", "Department", "Salary"],
        [
            ["Alice Brown", "Marketing", "52000"],
            ["Bob Smith", "Sales", "48000"],
            ["Carol Jones", "Marketing", "55000"],
            ["Dave Wilson", "Sales", "51000"],
            ["Eve Davis", "IT", "58000"],
        ],
    ),
    "charts": (
        "UnitC_Charts_Practice.csv",
        ["Quarter", "Revenue"],
        [["Q1", "25000"], ["Q2", "32000"], ["Q3", "28000"], ["Q4", "35000"]],
    ),
    "printing": (
        "UnitC_Printing_Practice.csv",
        ["Item", "Jan", "Feb", "Mar", "Total"],
        [
            ["Office Supplies", "450", "520", "480", "1450"],
            ["Software", "1200", "1100", "1350", "3650"],
            ["Hardware", "800", "920", "760", "2480"],
        ],
    ),
}

DEFAULT_PRACTICE = (
    "Practice_Data.csv",
    ["Name", "Value"],
    [["Sample 1", "100"], ["Sample 2", "200"], ["Sample 3", "150"]],
)


def write_practice_file(lesson_id: str, directory: Path | str) -> Path:
    """Writes the lesson's sample table as a CSV that opens directly in Excel."""
    filename, header, rows = PRACTICE_DATA.get(lesson_id, DEFAULT_PRACTICE)
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / filename
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(header)
        writer.writerows(rows)
    return path
