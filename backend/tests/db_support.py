"""
Shared SQLite fixtures for the service tests.

Each test case gets a fresh in-memory database built from the ORM metadata,
seeded with a handful of user profiles.
"""
import unittest

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from cinelist.db.models import Base, ListMember, MemberRole, UserProfile
from cinelist.db.session import build_session_factory

ALICE = "uid-alice"
BOB = "uid-bob"
CAROL = "uid-carol"
DAVE = "uid-dave"
ERIN = "uid-erin"

PROFILES = {
    ALICE: ("alice", "Alice A."),
    BOB: ("bob", "Bob B."),
    CAROL: ("carol", "Carol C."),
    DAVE: ("dave", "Dave D."),
    ERIN: ("erin", None),
}


def seed_profiles(session) -> None:
    for user_id, (username, display_name) in PROFILES.items():
        session.add(UserProfile(id=user_id, username=username, display_name=display_name))
    session.commit()


def owner_count(session, list_id) -> int:
    return (
        session.query(ListMember)
        .filter(ListMember.list_id == list_id, ListMember.role == MemberRole.OWNER)
        .count()
    )


def roster_ids(session, list_id) -> set[str]:
    return {
        m.user_id
        for m in session.query(ListMember).filter(ListMember.list_id == list_id).all()
    }


class DbTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = build_session_factory(self.engine)()
        seed_profiles(self.db)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def new_session(self):
        return build_session_factory(self.engine)()
