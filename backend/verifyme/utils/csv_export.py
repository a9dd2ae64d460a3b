import csv
import io
from datetime import date

from verifyme.models.students import StudentRecord

CSV_HEADERS = ["Full Name", "Matric Number", "Faculty", "Department", "Status", "Created At"]


def students_to_csv(students: list[StudentRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for s in students:
        writer.writerow([
            s.full_name,
            s.matric_number,
            s.faculty,
            s.department,
            s.status.value,
            s.created_at.strftime("%Y-%m-%d %H:%M:%S") if s.created_at else "N/A",
        ])
    return buffer.getvalue()


def export_filename(today: date = None) -> str:
    today = today or date.today()
    return f"students_{today.isoformat()}.csv"
