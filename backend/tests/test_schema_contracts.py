import inspect
import unittest
from pathlib import Path

from cinelist.db.models import Base
from cinelist.services import membership_service

MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "0001_collaborative_lists.py"


class TestSchemaContracts(unittest.TestCase):
    def test_migration_creates_every_model_table(self) -> None:
        content = MIGRATION.read_text(encoding="utf-8")
        for table_name in Base.metadata.tables:
            with self.subTest(table=table_name):
                self.assertIn(f'"{table_name}"', content)

    def test_migration_carries_partial_unique_indexes(self) -> None:
        content = MIGRATION.read_text(encoding="utf-8")
        self.assertIn("uq_list_members_one_owner", content)
        self.assertIn("uq_list_invites_pending_direct", content)
        self.assertIn("uq_movie_lists_one_default", content)
        self.assertIn("kind = 'direct' AND status = 'pending'", content)

    def test_roster_writes_go_through_version_check(self) -> None:
        source = inspect.getsource(membership_service.claim_roster)
        self.assertIn("MovieList.roster_version == seen", source)
        self.assertIn("rowcount != 1", source)
