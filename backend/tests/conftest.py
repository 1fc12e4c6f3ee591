from __future__ import annotations

import os
import tempfile
from datetime import date, datetime
from pathlib import Path

# Keep the application's default engine away from the working tree.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="kursus-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DATA_DIR}/kursus.db")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from kursus.core.database import Base
from kursus.db import models as m
from kursus.services.backup_service import BackupService


@pytest.fixture()
def session_factory(tmp_path: Path) -> sessionmaker:
    engine = create_engine(f"sqlite:///{tmp_path / 'kursus.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture()
def asset_dirs(tmp_path: Path) -> tuple[Path, Path]:
    return tmp_path / "uploads" / "certificates", tmp_path / "certificates"


@pytest.fixture()
def backup_service(session_factory: sessionmaker, asset_dirs: tuple[Path, Path]) -> BackupService:
    templates_dir, certificates_dir = asset_dirs
    return BackupService(
        session_factory,
        templates_dir=templates_dir,
        certificates_dir=certificates_dir,
        remote_asset_host="cloudinary",
    )


@pytest.fixture()
def seeded(session_factory: sessionmaker) -> dict[str, int]:
    """Populate every table with a small, consistent data set; return row counts per backup key."""
    with session_factory.begin() as db:
        admin = m.UserORM(email="admin@kursus.com", password="$2b$12$abcdefghijklmnopqrstuv", name="Admin", role="admin")
        course = m.CourseORM(name="Microsoft Office Mastery", description="Word, Excel, PowerPoint", duration=16, category="office")
        room = m.RoomORM(name="Lab 1", capacity=12, location="Lantai 2")
        teacher = m.TeacherORM(
            name="Budi Santoso",
            date_of_birth=date(1985, 6, 15),
            whatsapp="081234567890",
            specialization="Microsoft Office",
            experience=5,
            join_date=date(2020, 1, 15),
            salary=4000000,
            photo="https://res.cloudinary.com/demo/image/upload/budi.jpg",
        )
        db.add_all([admin, course, room, teacher])
        db.flush()

        db.add(m.CoursePricingORM(course_id=course.id, course_type="regular", base_price=800000, discount_rate=25))
        db.add(m.TeacherCourseORM(teacher_id=teacher.id, course_id=course.id))

        students = [
            m.StudentORM(
                name="Ahmad Rizki",
                student_number="STU-001",
                date_of_birth=date(1995, 3, 15),
                course_id=course.id,
                photo="https://res.cloudinary.com/demo/image/upload/ahmad.jpg",
            ),
            m.StudentORM(name="Dewi Lestari", student_number="STU-002", course_id=course.id, course_type="private"),
            m.StudentORM(name="Rudi Hermawan", student_number="STU-003", course_id=course.id, photo="/uploads/rudi.jpg"),
        ]
        db.add_all(students)
        db.flush()

        klass = m.ClassORM(name="Office Pagi", course_id=course.id, teacher_id=teacher.id, room_id=room.id, start_date=date(2024, 1, 8))
        db.add(klass)
        db.flush()
        db.add_all([m.ClassStudentORM(class_id=klass.id, student_id=s.id) for s in students])

        meeting = m.ClassMeetingORM(class_id=klass.id, meeting_number=1, meeting_date=date(2024, 1, 8), start_time="09:00", end_time="11:00")
        db.add(meeting)
        db.flush()
        db.add_all([m.AttendanceORM(meeting_id=meeting.id, student_id=s.id, status="present") for s in students])
        db.add(m.TeacherAttendanceORM(meeting_id=meeting.id, teacher_id=teacher.id))

        payments = [
            m.PaymentORM(
                student_id=students[i % 3].id,
                invoice_number=f"INV-{i:03d}",
                amount=600000,
                paid_amount=300000,
                remaining_amount=300000,
                status="partial",
                due_date=date(2024, 2, 1),
            )
            for i in range(5)
        ]
        db.add_all(payments)
        db.flush()
        db.add_all([
            m.PaymentTransactionORM(payment_id=payments[0].id, amount=200000, method="cash"),
            m.PaymentTransactionORM(payment_id=payments[0].id, amount=100000, method="transfer"),
        ])

        template = m.CertificateTemplateORM(
            name="Office Certificate",
            course_id=course.id,
            file_name="office.docx",
            file_path="/uploads/certificates/office.docx",
            placeholders=["{{name}}", "{{date}}"],
        )
        db.add(template)
        db.flush()
        db.add(m.CertificateORM(certificate_number="CERT/I/2024/001", student_id=students[0].id, course_id=course.id, template_id=template.id, issue_date=date(2024, 3, 1)))

        db.add(m.AnnouncementORM(title="Libur", content="Kursus libur tanggal merah", created_by=admin.id))
        db.add(m.EmployeeAttendanceORM(user_id=admin.id, work_date=date(2024, 1, 8), check_in=datetime(2024, 1, 8, 8, 0)))

        db.add(m.HeroSectionORM(title="Belajar Komputer", subtitle="Mulai hari ini"))
        db.add_all([m.FacilityORM(title="AC", sort_order=1), m.FacilityORM(title="WiFi", sort_order=2)])
        db.add(m.TestimonialORM(name="Maya", content="Sangat membantu", rating=5))
        db.add(m.GalleryImageORM(title="Kelas", image_url="https://res.cloudinary.com/demo/gallery.jpg"))
        db.add(m.LocationInfoORM(address="Jl. Merdeka No. 123", city="Jakarta", operating_hours={"mon-fri": "08:00-20:00"}))
        db.add(m.LandingCourseORM(course_id=course.id, title="Office", features=["Sertifikat", "Modul"], price=800000))
        db.add(m.BlogPostORM(title="Tips Excel", slug="tips-excel", content="...", status="published", tags=["excel"], published_at=datetime(2024, 1, 2, 10, 0)))

    return {
        "students": 3,
        "teachers": 1,
        "classes": 1,
        "courses": 1,
        "coursePricing": 1,
        "meetings": 1,
        "payments": 5,
        "paymentTransactions": 2,
        "certificates": 1,
        "certificateTemplates": 1,
        "users": 1,
        "rooms": 1,
        "classStudents": 3,
        "teacherAttendances": 1,
        "attendances": 3,
        "teacherCourses": 1,
        "announcements": 1,
        "employeeAttendances": 1,
        "heroSections": 1,
        "facilities": 2,
        "testimonials": 1,
        "galleryImages": 1,
        "locationInfo": 1,
        "landingCourses": 1,
        "blogPosts": 1,
    }
