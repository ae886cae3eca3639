"""Profiles, experience answers, suspension and reviews"""

import pytest

from app.domain.users.questions import MAID_EXPERIENCE_QUESTIONS, validate_experience_answers
from app.domain.users.repository import UserRepository
from app.errors import ValidationError


class TestExperienceAnswers:
    def test_answers_are_normalized_to_catalog_order(self):
        answers = validate_experience_answers(
            [
                {"questionId": "availability", "answers": ["Sat", "Mon", "Mon"]},
                {"questionId": "exp_years", "answers": ["3-5 years"]},
            ]
        )
        assert answers == [
            {"questionId": "exp_years", "question": "Years of professional cleaning experience?", "answers": ["3-5 years"]},
            {"questionId": "availability", "question": "Which days are you typically available?", "answers": ["Mon", "Sat"]},
        ]

    @pytest.mark.parametrize(
        "answers",
        [
            [{"questionId": "favourite_colour", "answers": ["Blue"]}],
            [{"questionId": "pets", "answers": ["Maybe"]}],
            [{"questionId": "pets", "answers": ["Yes", "No"]}],
            [{"questionId": "specialties", "answers": []}],
            [{"questionId": "pets", "answers": ["Yes"]}, {"questionId": "pets", "answers": ["No"]}],
        ],
    )
    def test_invalid_answers(self, answers):
        with pytest.raises(ValidationError):
            validate_experience_answers(answers)


class TestProfile:
    def test_questions_catalog(self, client):
        response = client.get("/users/experience-questions")
        assert response.status_code == 200
        assert [q["id"] for q in response.json()] == [q["id"] for q in MAID_EXPERIENCE_QUESTIONS]

    def test_maid_updates_profile_and_answers(self, client, maid):
        response = client.put(
            "/users/me",
            json={
                "firstName": "Lerato",
                "surname": "Mokoena",
                "bio": "Ten years of home cleaning",
                "languages": "English, Sesotho",
                "experienceAnswers": [
                    {"questionId": "specialties", "answers": ["Ironing", "Deep Cleaning"]},
                    {"questionId": "pets", "answers": ["Small pets only"]},
                ],
            },
            headers=maid.headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Lerato Mokoena"
        assert data["bio"] == "Ten years of home cleaning"
        assert [a["questionId"] for a in data["experienceAnswers"]] == ["specialties", "pets"]
        assert data["experienceAnswers"][0]["answers"] == ["Deep Cleaning", "Ironing"]

        # A second edit replaces the answers wholesale
        response = client.put(
            "/users/me",
            json={"experienceAnswers": [{"questionId": "exp_years", "answers": ["5+ years"]}]},
            headers=maid.headers,
        )
        assert [a["questionId"] for a in response.json()["experienceAnswers"]] == ["exp_years"]

    def test_invalid_answer_changes_nothing(self, client, maid):
        response = client.put(
            "/users/me",
            json={"bio": "changed", "experienceAnswers": [{"questionId": "pets", "answers": ["Dragons"]}]},
            headers=maid.headers,
        )
        assert response.status_code == 400
        assert client.get("/users/me", headers=maid.headers).json()["bio"] is None

    def test_clients_do_not_answer_experience_questions(self, client, client_account):
        response = client.put(
            "/users/me",
            json={"experienceAnswers": [{"questionId": "pets", "answers": ["Yes"]}]},
            headers=client_account.headers,
        )
        assert response.status_code == 400

    def test_date_of_birth_must_be_in_the_past(self, client, maid):
        response = client.put("/users/me", json={"dateOfBirth": "2999-01-01"}, headers=maid.headers)
        assert response.status_code == 422

    def test_private_fields_only_for_owner_and_admin(self, client, client_account, maid, admin):
        client.put("/users/me", json={"address": "1 Long Street", "nationality": "South African"}, headers=maid.headers)

        public = client.get(f"/users/{maid.id}", headers=client_account.headers).json()
        assert public["email"] is None
        assert public["address"] is None

        own = client.get("/users/me", headers=maid.headers).json()
        assert own["email"] == maid.email
        assert own["address"] == "1 Long Street"

        as_admin = client.get(f"/users/{maid.id}", headers=admin.headers).json()
        assert as_admin["nationality"] == "South African"

    def test_cv_must_be_own_pdf(self, client, maid, client_account):
        upload = client.post(
            "/files", files={"file": ("cv.pdf", b"%PDF-1.4 cv", "application/pdf")}, headers=maid.headers
        ).json()
        response = client.put("/users/me", json={"cvFileId": upload["id"]}, headers=maid.headers)
        assert response.status_code == 200
        assert response.json()["cvUrl"].startswith("https://files.test/user-files/")

        photo = client.post(
            "/files", files={"file": ("me.png", b"\x89PNG data", "image/png")}, headers=maid.headers
        ).json()
        assert client.put("/users/me", json={"cvFileId": photo["id"]}, headers=maid.headers).status_code == 400
        assert client.put(
            "/users/me", json={"cvFileId": upload["id"]}, headers=client_account.headers
        ).status_code == 400

    def test_list_users_by_role(self, client, client_account, maid, maid2):
        maids = client.get("/users?role=MAID", headers=client_account.headers).json()
        assert {u["id"] for u in maids} == {maid.id, maid2.id}

    def test_unknown_user(self, client, maid):
        assert client.get("/users/missing", headers=maid.headers).status_code == 404


class TestSuspension:
    def test_suspended_user_is_locked_out_and_notified(self, client, maid, admin, db):
        response = client.patch(f"/admin/users/{maid.id}/suspension", json={"suspended": True}, headers=admin.headers)
        assert response.status_code == 200
        assert response.json()["isSuspended"] is True

        assert client.get("/users/me", headers=maid.headers).status_code == 403

        client.patch(f"/admin/users/{maid.id}/suspension", json={"suspended": False}, headers=admin.headers)
        notes = client.get("/notifications", headers=maid.headers).json()
        assert [n["type"] for n in notes] == ["warning"]

    def test_admin_limits(self, client, maid, admin):
        assert client.patch(
            f"/admin/users/{admin.id}/suspension", json={"suspended": True}, headers=admin.headers
        ).status_code == 400
        assert client.patch(
            f"/admin/users/{admin.id}/suspension", json={"suspended": True}, headers=maid.headers
        ).status_code == 403


class TestReviews:
    def test_both_parties_review_after_completion(self, client, client_account, maid, hire):
        job, _ = hire(client_account, maid)
        early = client.post(f"/jobs/{job['id']}/reviews", json={"rating": 5}, headers=client_account.headers)
        assert early.status_code == 409

        client.post(f"/jobs/{job['id']}/complete", headers=client_account.headers)

        response = client.post(
            f"/jobs/{job['id']}/reviews", json={"rating": 5, "comment": "Spotless"}, headers=client_account.headers
        )
        assert response.status_code == 201
        assert response.json()["revieweeId"] == maid.id

        duplicate = client.post(f"/jobs/{job['id']}/reviews", json={"rating": 1}, headers=client_account.headers)
        assert duplicate.status_code == 409

        client.post(f"/jobs/{job['id']}/reviews", json={"rating": 4}, headers=maid.headers)

        maid_profile = client.get(f"/users/{maid.id}", headers=client_account.headers).json()
        assert maid_profile["rating"] == 5.0
        assert maid_profile["ratingCount"] == 1

        client_profile = client.get(f"/users/{client_account.id}", headers=maid.headers).json()
        assert client_profile["rating"] == 4.0

        reviews = client.get(f"/users/{maid.id}/reviews", headers=maid.headers).json()
        assert [r["comment"] for r in reviews] == ["Spotless"]

    def test_running_average(self, client, client_account, maid, hire):
        for rating in (5, 2):
            job, _ = hire(client_account, maid)
            client.post(f"/jobs/{job['id']}/complete", headers=client_account.headers)
            client.post(f"/jobs/{job['id']}/reviews", json={"rating": rating}, headers=client_account.headers)

        profile = client.get(f"/users/{maid.id}", headers=maid.headers).json()
        assert profile["rating"] == pytest.approx(3.5)
        assert profile["ratingCount"] == 2

    def test_outsiders_and_bad_ratings(self, client, client_account, maid, maid2, hire):
        job, _ = hire(client_account, maid)
        client.post(f"/jobs/{job['id']}/complete", headers=client_account.headers)

        assert client.post(f"/jobs/{job['id']}/reviews", json={"rating": 3}, headers=maid2.headers).status_code == 403
        assert client.post(
            f"/jobs/{job['id']}/reviews", json={"rating": 6}, headers=client_account.headers
        ).status_code == 422

    def test_concurrent_duplicate_is_a_conflict(self, client, client_account, maid, hire, monkeypatch):
        job, _ = hire(client_account, maid)
        client.post(f"/jobs/{job['id']}/complete", headers=client_account.headers)
        client.post(f"/jobs/{job['id']}/reviews", json={"rating": 5}, headers=client_account.headers)

        # A second writer that passed the duplicate check before the first one committed
        monkeypatch.setattr(UserRepository, "get_review", staticmethod(lambda db, job_id, reviewer_id: None))

        response = client.post(f"/jobs/{job['id']}/reviews", json={"rating": 1}, headers=client_account.headers)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_state"

        profile = client.get(f"/users/{maid.id}", headers=maid.headers).json()
        assert profile["rating"] == 5.0
        assert profile["ratingCount"] == 1
