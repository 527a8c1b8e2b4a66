import unittest
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from cinelist.db.session import get_db
from cinelist.deps.auth import get_current_user
from cinelist.main import app
from cinelist.services.errors import InvalidNoteError, MovieNotFoundError

USER = "uid-alice"
DUNE = {"tmdb_id": 693134, "title": "Dune: Part Two", "year": "2024", "media_type": "movie"}


class TestMoviesApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=USER)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_add_reports_partial_success_with_200(self) -> None:
        good, bad = uuid4(), uuid4()
        result = {
            "success_count": 1,
            "error_count": 1,
            "results": [
                {"list_id": good, "ok": True, "error_code": None, "message": None},
                {"list_id": bad, "ok": False, "error_code": "NOT_A_MEMBER", "message": "no"},
            ],
        }
        with patch("cinelist.api.movies.add_movie_to_lists", return_value=result) as add:
            response = self.client.post(
                "/movies/add",
                json={
                    "movie": DUNE,
                    "selections": [
                        {"list_id": str(good), "note": "IMAX"},
                        {"list_id": str(bad), "list_owner_id": "uid-carol"},
                    ],
                },
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["error_count"], 1)
        _, user_id, movie, selections = add.call_args.args
        self.assertEqual(user_id, USER)
        self.assertEqual(movie["tmdb_id"], 693134)
        self.assertEqual(selections[0]["list_id"], good)
        self.assertEqual(selections[0]["note"], "IMAX")
        self.assertEqual(selections[1]["list_owner_id"], "uid-carol")

    def test_add_requires_a_selection(self) -> None:
        response = self.client.post("/movies/add", json={"movie": DUNE, "selections": []})
        self.assertEqual(response.status_code, 422)

    def test_update_note(self) -> None:
        list_id = uuid4()
        result = {"list_id": list_id, "tmdb_id": 693134, "notes": {USER: "IMAX only"}}
        with patch("cinelist.api.movies.update_movie_note", return_value=result) as update:
            response = self.client.put(
                f"/lists/{list_id}/movies/693134/note", json={"text": "IMAX only"}
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["notes"], {USER: "IMAX only"})
        self.assertEqual(update.call_args.args[1:], (list_id, 693134, USER, "IMAX only"))

    def test_update_note_errors(self) -> None:
        with patch("cinelist.api.movies.update_movie_note", side_effect=InvalidNoteError("long")):
            response = self.client.put(f"/lists/{uuid4()}/movies/1/note", json={"text": "x"})
        self.assertEqual(response.status_code, 400)

        with patch("cinelist.api.movies.update_movie_note", side_effect=MovieNotFoundError("no")):
            response = self.client.put(f"/lists/{uuid4()}/movies/1/note", json={"text": "x"})
        self.assertEqual(response.status_code, 404)
