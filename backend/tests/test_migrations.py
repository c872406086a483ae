import glob
import importlib.util
import os

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

VERSIONS_DIR = os.path.join(os.path.dirname(__file__), '..', 'migrations', 'versions')


def _load_revision():
    path = glob.glob(os.path.join(VERSIONS_DIR, '5b7c1e0d9a21_*.py'))[0]
    spec = importlib.util.spec_from_file_location('revision_5b7c1e0d9a21', path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _upgrade(engine):
    revision = _load_revision()
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()


def test_upgrade_creates_tables_and_session_row(flask_app):
    engine = sa.create_engine('sqlite://')
    _upgrade(engine)
    with engine.connect() as conn:
        assert {'game_state', 'team', 'category', 'question'} <= set(sa.inspect(conn).get_table_names())
        rows = conn.execute(sa.text('SELECT id, current_round, show_answer FROM game_state')).all()
    assert [(r.id, r.current_round, bool(r.show_answer)) for r in rows] == [(1, 'Easy', False)]


def test_upgrade_uses_configured_session_id(flask_app):
    flask_app.config['SESSION_ID'] = 7
    engine = sa.create_engine('sqlite://')
    _upgrade(engine)
    with engine.connect() as conn:
        ids = conn.execute(sa.text('SELECT id FROM game_state')).scalars().all()
    assert ids == [7]
