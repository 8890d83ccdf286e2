"""Class directory, subject and student models.

These tables are owned by the wider school-management application; the
scheduler only reads them.
"""

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class ClassSection(Base, IDMixin, TimestampMixin):
    """A class/section such as 11-A."""

    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    section: Mapped[str | None] = mapped_column(String(50), nullable=True)

    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="class_section",
        order_by="Student.full_name",
    )

    @property
    def label(self) -> str:
        return f"{self.name}-{self.section}" if self.section else self.name

    def __repr__(self) -> str:
        return f"<ClassSection(id={self.id}, label={self.label})>"


class Subject(Base, IDMixin, TimestampMixin):
    """Subject model."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name})>"


class Student(Base, IDMixin, TimestampMixin):
    """Student enrolled in a class."""

    __tablename__ = "students"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    admission_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    class_section: Mapped["ClassSection"] = relationship(
        "ClassSection",
        back_populates="students",
    )

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.full_name}, class_id={self.class_id})>"
