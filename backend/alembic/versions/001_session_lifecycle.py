# backend/alembic/versions/001_session_lifecycle.py
"""Session lifecycle and payroll schema

Revision ID: 001_session_lifecycle
Revises:
Create Date: 2026-03-01 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_session_lifecycle"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    """Create identity projection, slot, booking and payroll tables."""
    print("Creating session lifecycle tables...")

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_account", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        comment="Local projection of teachers from the identity service",
    )
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=True)

    op.create_table(
        "students",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        comment="Local projection of students from the identity service",
    )
    op.create_index("ix_students_email", "students", ["email"], unique=True)

    print("Creating slots table...")
    op.create_table(
        "slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "teacher_id", "slot_date", "start_time", name="uq_slots_teacher_date_time"
        ),
    )
    op.create_index("ix_slots_teacher_id", "slots", ["teacher_id"])

    print("Creating bookings table...")
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("lesson_ref", sa.String(255), nullable=False),
        sa.Column("student_level", sa.String(100), nullable=False),
        sa.Column("classroom_id", sa.String(120), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("teacher_entered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("student_entered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("teacher_entered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("student_entered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("absent_checked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("class_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("late_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("absent_marked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("absent_type", sa.String(20), nullable=True),
        sa.Column("absent_reason", sa.Text(), nullable=True),
        sa.Column("cancellation_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column(
            "cancellation_rejected", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("needs_audit", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("audit_note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'absent')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "absent_type IS NULL OR absent_type IN ('student', 'teacher')",
            name="ck_bookings_absent_type",
        ),
        sa.CheckConstraint("late_minutes >= 0", name="check_late_minutes_non_negative"),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_teacher_id", "bookings", ["teacher_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_classroom_id", "bookings", ["classroom_id"], unique=True)
    op.create_index(
        "uq_bookings_teacher_slot_active",
        "bookings",
        ["teacher_id", "booking_date", "start_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "cancellation_requests",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("requester_role", sa.String(20), nullable=False),
        sa.Column("requester_id", sa.String(26), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.String(26), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_cancellation_requests_status",
        ),
        sa.CheckConstraint(
            "requester_role IN ('teacher', 'student')",
            name="ck_cancellation_requests_requester_role",
        ),
    )
    op.create_index("ix_cancellation_requests_booking_id", "cancellation_requests", ["booking_id"])
    op.create_index(
        "ix_cancellation_requests_requester_id", "cancellation_requests", ["requester_id"]
    )
    op.create_index("ix_cancellation_requests_status", "cancellation_requests", ["status"])
    op.create_index(
        "uq_cancellation_requests_pending_booking",
        "cancellation_requests",
        ["booking_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    print("Creating payroll tables...")
    op.create_table(
        "payment_records",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("period_label", sa.String(32), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False),
        sa.Column("account", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="success"),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("teacher_id", "period_label", name="uq_payment_records_teacher_period"),
        comment="Append-only salary ledger",
    )
    op.create_index("ix_payment_records_teacher_id", "payment_records", ["teacher_id"])

    op.create_table(
        "platform_config",
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("value_json", sa.JSON(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("recipient_id", sa.String(26), nullable=False),
        sa.Column("recipient_role", sa.String(20), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])

    print("Session lifecycle tables created")


def downgrade() -> None:
    """Drop session lifecycle tables."""
    print("Dropping session lifecycle tables...")

    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("platform_config")

    op.drop_index("ix_payment_records_teacher_id", table_name="payment_records")
    op.drop_table("payment_records")

    op.drop_index("uq_cancellation_requests_pending_booking", table_name="cancellation_requests")
    op.drop_index("ix_cancellation_requests_status", table_name="cancellation_requests")
    op.drop_index("ix_cancellation_requests_requester_id", table_name="cancellation_requests")
    op.drop_index("ix_cancellation_requests_booking_id", table_name="cancellation_requests")
    op.drop_table("cancellation_requests")

    op.drop_index("uq_bookings_teacher_slot_active", table_name="bookings")
    op.drop_index("ix_bookings_classroom_id", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_index("ix_bookings_teacher_id", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_slots_teacher_id", table_name="slots")
    op.drop_table("slots")

    op.drop_index("ix_students_email", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_teachers_email", table_name="teachers")
    op.drop_table("teachers")
