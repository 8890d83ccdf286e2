"""Exam marks service: marks sheet, bulk replace and Excel template/upload."""

import logging
from decimal import Decimal, InvalidOperation
from io import BytesIO

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, UploadError, ValidationError
from app.models.exam import ExamMark
from app.models.student import Student
from app.models.weekly_exam import WeeklyExam
from app.schemas.exam import (
    ExamMarksSheet,
    MarkEntry,
    MarksSaveResponse,
    MarksUploadError,
    MarksUploadResult,
    MarkWarning,
    StudentMarkEntry,
)
from app.services.grading import calculate_grade

logger = logging.getLogger(__name__)

# Column order of the marks spreadsheet
TEMPLATE_HEADERS = [
    "Student ID",
    "Student Name",
    "Admission No",
    "Marks Obtained",
    "Grade",
    "Remarks",
]


class ExamMarkService:
    """Marks entry for weekly exams."""

    def __init__(self, db: Session):
        self.db = db

    def get_marks_sheet(self, exam_id: int) -> ExamMarksSheet:
        """All students of the exam's class with their saved marks, plus statistics."""
        exam = self._get_exam(exam_id)
        students = self._get_class_students(exam.class_id)

        result = self.db.execute(select(ExamMark).where(ExamMark.exam_id == exam_id))
        marks_by_student = {m.student_id: m for m in result.scalars().all()}

        rows = []
        marks_list: list[Decimal] = []
        for student in students:
            mark = marks_by_student.get(student.id)
            if mark and mark.marks_obtained is not None:
                marks_list.append(mark.marks_obtained)
            rows.append(StudentMarkEntry(
                student_id=student.id,
                student_name=student.full_name,
                admission_number=student.admission_number,
                marks_obtained=mark.marks_obtained if mark else None,
                grade=mark.grade if mark else None,
                remarks=mark.remarks if mark else None,
            ))

        average = sum(marks_list) / len(marks_list) if marks_list else None

        return ExamMarksSheet(
            exam_id=exam.id,
            exam_title=exam.title,
            class_label=exam.class_label,
            total_marks=exam.total_marks,
            students=rows,
            total_students=len(students),
            marks_entered=len(marks_list),
            average_marks=Decimal(str(average)).quantize(Decimal("0.01")) if average is not None else None,
            highest_marks=max(marks_list) if marks_list else None,
            lowest_marks=min(marks_list) if marks_list else None,
        )

    def save_marks(self, exam_id: int, entries: list[MarkEntry]) -> MarksSaveResponse:
        """Replace every saved mark of the exam with `entries`.

        Entries without marks are dropped. A missing grade is derived from the
        marks and the exam's total. Marks outside 0..total_marks are kept and
        reported as warnings.
        """
        exam = self._get_exam(exam_id)
        class_student_ids = {s.id for s in self._get_class_students(exam.class_id)}

        # Validate all student IDs before any DB operations
        outsiders = [e.student_id for e in entries if e.student_id not in class_student_ids]
        if outsiders:
            raise ValidationError(
                f"Students not in class {exam.class_label}",
                details={"student_ids": outsiders},
            )

        warnings: list[MarkWarning] = []
        records: dict[int, ExamMark] = {}
        skipped = 0
        for entry in entries:
            if entry.marks_obtained is None:
                skipped += 1
                continue

            if entry.marks_obtained < 0 or entry.marks_obtained > exam.total_marks:
                warnings.append(MarkWarning(
                    student_id=entry.student_id,
                    message=f"Marks obtained ({entry.marks_obtained}) outside 0..{exam.total_marks}",
                ))

            records[entry.student_id] = ExamMark(
                exam_id=exam_id,
                student_id=entry.student_id,
                marks_obtained=entry.marks_obtained,
                grade=entry.grade or calculate_grade(entry.marks_obtained, exam.total_marks),
                remarks=entry.remarks or None,
            )

        self.db.execute(delete(ExamMark).where(ExamMark.exam_id == exam_id))
        self.db.add_all(records.values())
        self.db.flush()
        self.db.expire(exam, ["marks"])

        logger.info(f"Saved marks for {len(records)} students in weekly exam {exam_id}")
        return MarksSaveResponse(
            exam_id=exam_id,
            saved=len(records),
            skipped=skipped,
            warnings=warnings,
            message=f"Saved marks for {len(records)} students",
        )

    # ==========================================
    # Template Generation
    # ==========================================

    def generate_template(self, exam_id: int) -> bytes:
        """Generate an Excel marks sheet prefilled with the class's students and saved marks."""
        exam = self._get_exam(exam_id)
        sheet = self.get_marks_sheet(exam_id)

        wb = Workbook()
        ws = wb.active
        ws.title = "Marks"

        # Styles
        title_font = Font(bold=True, size=14)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        center_align = Alignment(horizontal='center', vertical='center')

        last_col = get_column_letter(len(TEMPLATE_HEADERS))
        ws.merge_cells(f"A1:{last_col}1")
        title_cell = ws.cell(
            row=1,
            column=1,
            value=f"{exam.title} - {exam.class_label} - {exam.exam_date} (out of {exam.total_marks})",
        )
        title_cell.font = title_font
        title_cell.alignment = center_align

        for col_idx, header in enumerate(TEMPLATE_HEADERS, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align

        for row_idx, student in enumerate(sheet.students, start=3):
            values = [
                student.student_id,
                student.student_name,
                student.admission_number,
                float(student.marks_obtained) if student.marks_obtained is not None else None,
                student.grade,
                student.remarks,
            ]
            for col_idx, value in enumerate(values, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = thin_border

        widths = [12, 30, 15, 16, 10, 30]
        for col_idx, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        output = BytesIO()
        wb.save(output)
        return output.getvalue()

    # ==========================================
    # Excel Upload
    # ==========================================

    def import_marks(self, exam_id: int, file_content: bytes) -> MarksUploadResult:
        """Read a filled-in marks template and save it as the exam's full marks set.

        Rows with errors are reported and left out; the remaining rows replace
        the saved marks exactly like save_marks.
        """
        exam = self._get_exam(exam_id)
        logger.info(f"[MARKS UPLOAD] Starting - exam_id={exam_id}, file_size={len(file_content)} bytes")

        try:
            wb = load_workbook(BytesIO(file_content), data_only=True)
            ws = wb.active
        except Exception as e:
            logger.error(f"[MARKS UPLOAD] Failed to load Excel: {str(e)}")
            raise UploadError(f"Invalid Excel file: {str(e)}")

        header_row, col_map = self._find_header_row(ws)
        if header_row is None or col_map.get("student_id") is None or col_map.get("marks") is None:
            raise UploadError("Could not find 'Student ID' and 'Marks Obtained' columns")

        class_student_ids = {s.id for s in self._get_class_students(exam.class_id)}
        errors: list[MarksUploadError] = []
        entries: list[MarkEntry] = []
        skipped_rows = 0

        for row_num, row in enumerate(ws.iter_rows(min_row=header_row + 1, values_only=True), start=header_row + 1):
            if not any(v is not None and str(v).strip() for v in row):
                skipped_rows += 1
                continue

            student_name = self._cell(row, col_map.get("student_name"))
            raw_id = self._cell(row, col_map["student_id"])
            try:
                student_id = int(float(raw_id)) if raw_id else None
            except (ValueError, OverflowError):
                student_id = None
            if student_id is None or student_id not in class_student_ids:
                errors.append(MarksUploadError(
                    row=row_num,
                    student_name=student_name,
                    column="Student ID",
                    message=f"Student ID '{raw_id}' is not in class {exam.class_label}",
                ))
                continue

            marks_str = self._cell(row, col_map["marks"])
            if not marks_str:
                skipped_rows += 1
                continue
            try:
                marks_obtained = Decimal(marks_str)
            except InvalidOperation:
                marks_obtained = None
            if marks_obtained is None or not marks_obtained.is_finite():
                errors.append(MarksUploadError(
                    row=row_num,
                    student_name=student_name,
                    column="Marks Obtained",
                    message=f"Invalid marks value: '{marks_str}'",
                ))
                continue

            entries.append(MarkEntry(
                student_id=student_id,
                marks_obtained=marks_obtained,
                grade=self._cell(row, col_map.get("grade")),
                remarks=self._cell(row, col_map.get("remarks")),
            ))

        saved = self.save_marks(exam_id, entries)
        total = len(entries) + len(errors) + skipped_rows
        logger.info(
            f"[MARKS UPLOAD] Completed: {len(entries)} OK, {len(errors)} failed, {skipped_rows} skipped"
        )

        return MarksUploadResult(
            total_rows=total,
            successful_rows=saved.saved,
            failed_rows=len(errors),
            skipped_rows=skipped_rows,
            errors=errors,
            warnings=saved.warnings,
            message=f"Processed {saved.saved} marks successfully.",
        )

    # ==========================================
    # Helper Methods
    # ==========================================

    def _find_header_row(self, ws) -> tuple[int | None, dict[str, int]]:
        """Locate the header row (the template puts a title above it) and map columns."""
        for row_idx in range(1, min(ws.max_row, 5) + 1):
            headers = [str(cell.value).strip().lower() if cell.value else "" for cell in ws[row_idx]]
            col_map: dict[str, int] = {}
            for idx, header in enumerate(headers):
                if "student" in header and "id" in header:
                    col_map["student_id"] = idx
                elif "student" in header and "name" in header:
                    col_map["student_name"] = idx
                elif "remark" in header:
                    col_map["remarks"] = idx
                elif "marks" in header or "obtained" in header:
                    col_map["marks"] = idx
                elif header == "grade":
                    col_map["grade"] = idx
            if "student_id" in col_map:
                return row_idx, col_map
        return None, {}

    @staticmethod
    def _cell(row: tuple, idx: int | None) -> str | None:
        if idx is None or idx >= len(row) or row[idx] is None:
            return None
        value = str(row[idx]).strip()
        if not value or value.lower() == "none":
            return None
        return value

    def _get_exam(self, exam_id: int) -> WeeklyExam:
        exam = self.db.get(WeeklyExam, exam_id)
        if not exam:
            raise NotFoundError("Weekly exam", str(exam_id))
        return exam

    def _get_class_students(self, class_id: int) -> list[Student]:
        result = self.db.execute(
            select(Student)
            .where(Student.class_id == class_id)
            .order_by(Student.full_name)
        )
        return list(result.scalars().all())
