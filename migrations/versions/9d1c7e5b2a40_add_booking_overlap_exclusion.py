"""add booking overlap exclusion constraint (postgresql)

Revision ID: 9d1c7e5b2a40
Revises: 4b8e2f1a9c3d
Create Date: 2026-10-12 00:10:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '9d1c7e5b2a40'
down_revision = '4b8e2f1a9c3d'
branch_labels = None
depends_on = None


def upgrade():
    # Only postgres can enforce range exclusion; other backends rely on the
    # row lock taken before the overlap check.
    if op.get_bind().dialect.name != 'postgresql':
        return
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        "ALTER TABLE bookings ADD CONSTRAINT ex_bookings_room_active_overlap "
        "EXCLUDE USING gist (room_id WITH =, tsrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'active')"
    )


def downgrade():
    if op.get_bind().dialect.name != 'postgresql':
        return
    op.execute('ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_room_active_overlap')
