"""create users, sessions, session_assignments and scans tables"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_rollcall_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("ADMIN", "SCANNER", name="user_role", native_enum=False, length=16),
            nullable=False,
            server_default="SCANNER",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_sessions"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_sessions_created_by_users"),
    )
    op.create_index("ix_sessions_created_at", "sessions", ["created_at"])

    op.create_table(
        "session_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(36), nullable=False),
        sa.Column("scanner_user_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_session_assignments"),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["sessions.id"],
            name="fk_session_assignments_session_id_sessions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["scanner_user_id"], ["users.id"], name="fk_session_assignments_scanner_user_id_users"
        ),
        sa.UniqueConstraint("session_id", "scanner_user_id", name="uq_session_assignments_session_scanner"),
    )
    op.create_index("ix_session_assignments_session_id", "session_assignments", ["session_id"])
    op.create_index("ix_session_assignments_scanner_user_id", "session_assignments", ["scanner_user_id"])

    op.create_table(
        "scans",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("session_id", sa.String(36), nullable=False),
        sa.Column("scanned_student_number", sa.String(64), nullable=False),
        sa.Column("scanned_by_user_id", sa.String(36), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_scans"),
        sa.ForeignKeyConstraint(
            ["session_id"], ["sessions.id"], name="fk_scans_session_id_sessions", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["scanned_by_user_id"], ["users.id"], name="fk_scans_scanned_by_user_id_users"
        ),
        sa.UniqueConstraint("session_id", "scanned_student_number", name="uq_scans_session_student_number"),
    )
    op.create_index("ix_scans_session_scanned_at", "scans", ["session_id", "scanned_at"])


def downgrade() -> None:
    op.drop_index("ix_scans_session_scanned_at", table_name="scans")
    op.drop_table("scans")
    op.drop_index("ix_session_assignments_scanner_user_id", table_name="session_assignments")
    op.drop_index("ix_session_assignments_session_id", table_name="session_assignments")
    op.drop_table("session_assignments")
    op.drop_index("ix_sessions_created_at", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
