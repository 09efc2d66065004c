"""create academic records tables

Revision ID: 3c8e1f2a9b40
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c8e1f2a9b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=128), nullable=False, unique=True),
        sa.Column('email', sa.String(length=128), nullable=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('must_change_password', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'students',
        sa.Column('enrollment_no', sa.String(length=32), primary_key=True),
        sa.Column('user_id_fk', sa.Integer(), nullable=True),
        sa.Column('student_name', sa.String(length=64), nullable=True),
        sa.Column('surname', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=128), nullable=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('current_semester', sa.Integer(), nullable=True),
        sa.Column('academic_year', sa.String(length=16), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(['user_id_fk'], ['users.user_id']),
    )

    op.create_table(
        'semesters',
        sa.Column('semester_id', sa.Integer(), primary_key=True),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('academic_year', sa.String(length=16), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
    )

    op.create_table(
        'courses',
        sa.Column('course_id', sa.Integer(), primary_key=True),
        sa.Column('course_code', sa.String(length=64), nullable=True),
        sa.Column('course_name', sa.String(length=128), nullable=False),
        sa.Column('credits', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )

    op.create_table(
        'exam_types',
        sa.Column('exam_type_id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=10), nullable=False, unique=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('weightage', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )

    op.create_table(
        'exams',
        sa.Column('exam_id', sa.Integer(), primary_key=True),
        sa.Column('course_id_fk', sa.Integer(), nullable=False),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('exam_type_id_fk', sa.Integer(), nullable=False),
        sa.Column('exam_name', sa.String(length=100), nullable=True),
        sa.Column('total_marks', sa.Float(), nullable=False),
        sa.Column('passing_marks', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['course_id_fk'], ['courses.course_id']),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id']),
        sa.ForeignKeyConstraint(['exam_type_id_fk'], ['exam_types.exam_type_id']),
    )

    op.create_table(
        'grade_scales',
        sa.Column('grade_id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=5), nullable=False, unique=True),
        sa.Column('grade_name', sa.String(length=30), nullable=False),
        sa.Column('lower_limit', sa.Float(), nullable=False),
        sa.Column('upper_limit', sa.Float(), nullable=False),
        sa.Column('grade_points', sa.Float(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'attendance_status_types',
        sa.Column('status_id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=10), nullable=False, unique=True),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('is_counted_present', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )

    op.create_table(
        'attendance',
        sa.Column('attendance_id', sa.Integer(), primary_key=True),
        sa.Column('student_id_fk', sa.String(length=32), nullable=False),
        sa.Column('course_id_fk', sa.Integer(), nullable=False),
        sa.Column('status_id_fk', sa.Integer(), nullable=False),
        sa.Column('date_marked', sa.Date(), nullable=False),
        sa.Column('period_no', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['student_id_fk'], ['students.enrollment_no']),
        sa.ForeignKeyConstraint(['course_id_fk'], ['courses.course_id']),
        sa.ForeignKeyConstraint(['status_id_fk'], ['attendance_status_types.status_id']),
    )
    op.create_index('ix_attendance_student_course', 'attendance', ['student_id_fk', 'course_id_fk', 'date_marked'])

    op.create_table(
        'attendance_summaries',
        sa.Column('summary_id', sa.Integer(), primary_key=True),
        sa.Column('student_id_fk', sa.String(length=32), nullable=False),
        sa.Column('course_id_fk', sa.Integer(), nullable=False),
        sa.Column('semester_id_fk', sa.Integer(), nullable=False),
        sa.Column('total_classes', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('attended', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('condonation_applied', sa.Boolean(), nullable=True),
        sa.Column('condonation_status', sa.String(length=16), nullable=True),
        sa.Column('condonation_percentage', sa.Float(), nullable=True),
        sa.Column('condonation_reason', sa.String(length=500), nullable=True),
        sa.Column('required_percentage', sa.Float(), nullable=True),
        sa.Column('last_calculated', sa.DateTime(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['student_id_fk'], ['students.enrollment_no']),
        sa.ForeignKeyConstraint(['course_id_fk'], ['courses.course_id']),
        sa.ForeignKeyConstraint(['semester_id_fk'], ['semesters.semester_id']),
        sa.UniqueConstraint('student_id_fk', 'course_id_fk', 'semester_id_fk', name='uq_attendance_summary_key'),
        sa.CheckConstraint('attended <= total_classes', name='ck_attendance_summary_attended'),
    )

    op.create_table(
        'exam_results',
        sa.Column('result_id', sa.Integer(), primary_key=True),
        sa.Column('student_id_fk', sa.String(length=32), nullable=False),
        sa.Column('exam_id_fk', sa.Integer(), nullable=False),
        sa.Column('marks_obtained', sa.Float(), nullable=True),
        sa.Column('out_of_marks', sa.Float(), nullable=True),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('grade_code', sa.String(length=5), nullable=True),
        sa.Column('grade_points', sa.Float(), nullable=True),
        sa.Column('result_status', sa.String(length=16), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('verified_by_user_id', sa.Integer(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('published_by_user_id', sa.Integer(), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('revaluation_requested', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('revaluation_status', sa.String(length=16), nullable=True),
        sa.Column('revaluation_reason', sa.Text(), nullable=True),
        sa.Column('revaluation_remarks', sa.Text(), nullable=True),
        sa.Column('revaluation_reviewed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('revaluated_by_user_id', sa.Integer(), nullable=True),
        sa.Column('previous_marks', sa.Float(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['student_id_fk'], ['students.enrollment_no']),
        sa.ForeignKeyConstraint(['exam_id_fk'], ['exams.exam_id']),
        sa.ForeignKeyConstraint(['verified_by_user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['published_by_user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['revaluation_reviewed_by_user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['revaluated_by_user_id'], ['users.user_id']),
        sa.UniqueConstraint('student_id_fk', 'exam_id_fk', name='uq_exam_result_student_exam'),
    )

    op.create_table(
        'import_logs',
        sa.Column('log_id', sa.Integer(), primary_key=True),
        sa.Column('user_id_fk', sa.Integer(), nullable=True),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('dry_run', sa.Boolean(), nullable=True),
        sa.Column('created_count', sa.Integer(), nullable=True),
        sa.Column('updated_count', sa.Integer(), nullable=True),
        sa.Column('skipped_count', sa.Integer(), nullable=True),
        sa.Column('errors_count', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('extra_json', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id_fk'], ['users.user_id']),
    )


def downgrade():
    op.drop_table('import_logs')
    op.drop_table('exam_results')
    op.drop_table('attendance_summaries')
    op.drop_index('ix_attendance_student_course', table_name='attendance')
    op.drop_table('attendance')
    op.drop_table('attendance_status_types')
    op.drop_table('grade_scales')
    op.drop_table('exams')
    op.drop_table('exam_types')
    op.drop_table('courses')
    op.drop_table('semesters')
    op.drop_table('students')
    op.drop_table('users')
