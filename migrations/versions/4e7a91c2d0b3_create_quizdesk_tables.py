"""Create quizdesk tables

Revision ID: 4e7a91c2d0b3
Revises:
Create Date: 2026-10-19 10:12:04.118270

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '4e7a91c2d0b3'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('student', 'teacher', 'admin', name='user_role')
quiz_access_type = sa.Enum('global', 'group', 'code', name='quiz_access_type')
question_scope = sa.Enum('personal', 'global', name='question_scope')


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    if 'users' not in tables:
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('role', user_role, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'groups' not in tables:
        op.create_table('groups',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('code', sa.String(length=20), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_groups_code', 'groups', ['code'], unique=True)
        op.create_index('ix_groups_created_by', 'groups', ['created_by'], unique=False)
        op.create_index('ix_groups_created_at', 'groups', ['created_at'], unique=False)

    if 'group_members' not in tables:
        op.create_table('group_members',
            sa.Column('group_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('joined_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('group_id', 'user_id')
        )
        op.create_index('ix_group_members_user_id', 'group_members', ['user_id'], unique=False)

    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('category', sa.String(length=120), nullable=False),
            sa.Column('time_limit_minutes', sa.Integer(), nullable=False),
            sa.Column('total_marks', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('marks_per_question', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('single_attempt', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('access_type', quiz_access_type, nullable=False),
            sa.Column('access_code', sa.String(length=20), nullable=True),
            sa.Column('access_code_hash', sa.String(length=64), nullable=True),
            sa.Column('group_id', sa.Integer(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quizzes_category', 'quizzes', ['category'], unique=False)
        op.create_index('ix_quizzes_is_enabled', 'quizzes', ['is_enabled'], unique=False)
        op.create_index('ix_quizzes_access_code_hash', 'quizzes', ['access_code_hash'], unique=False)
        op.create_index('ix_quizzes_group_id', 'quizzes', ['group_id'], unique=False)
        op.create_index('ix_quizzes_created_by', 'quizzes', ['created_by'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)
        op.create_index('ix_quizzes_enabled_access', 'quizzes', ['is_enabled', 'access_type'], unique=False)

    if 'quiz_questions' not in tables:
        op.create_table('quiz_questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('options', sa.JSON(), nullable=False),
            sa.Column('correct_index', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_questions_quiz_position', 'quiz_questions', ['quiz_id', 'position'], unique=False)

    if 'bank_questions' not in tables:
        op.create_table('bank_questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('options', sa.JSON(), nullable=False),
            sa.Column('correct_index', sa.Integer(), nullable=False),
            sa.Column('category', sa.String(length=120), nullable=False),
            sa.Column('scope', question_scope, nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_bank_questions_category', 'bank_questions', ['category'], unique=False)
        op.create_index('ix_bank_questions_created_by', 'bank_questions', ['created_by'], unique=False)
        op.create_index('ix_bank_questions_created_at', 'bank_questions', ['created_at'], unique=False)
        op.create_index('ix_bank_questions_scope_category', 'bank_questions', ['scope', 'category'], unique=False)

    if 'attempts' not in tables:
        op.create_table('attempts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('answers', sa.JSON(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('total_marks', sa.Integer(), nullable=True),
            sa.Column('time_taken_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('attempt_date', sa.DateTime(), nullable=False),
            sa.Column('single_attempt_lock', sa.Boolean(), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'quiz_id', 'single_attempt_lock', name='uq_attempts_single')
        )
        op.create_index('ix_attempts_user_id', 'attempts', ['user_id'], unique=False)
        op.create_index('ix_attempts_quiz_id', 'attempts', ['quiz_id'], unique=False)
        op.create_index('ix_attempts_attempt_date', 'attempts', ['attempt_date'], unique=False)
        op.create_index('ix_attempts_quiz_ranking', 'attempts', ['quiz_id', 'score', 'time_taken_seconds'], unique=False)


def downgrade():
    op.drop_table('attempts')
    op.drop_table('bank_questions')
    op.drop_table('quiz_questions')
    op.drop_table('quizzes')
    op.drop_table('group_members')
    op.drop_table('groups')
    op.drop_table('users')
    bind = op.get_bind()
    question_scope.drop(bind, checkfirst=True)
    quiz_access_type.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
