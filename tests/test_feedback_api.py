"""
API tests for /api/feedback.
"""


def submit(client, **overrides):
    body = {"alumniName": "Diya Rao", "text": "Great mentors and labs", "rating": 5}
    body.update(overrides)
    return client.post("/api/feedback", json=body)


class TestFeedback:
    def test_public_submission_is_unapproved(self, client, store):
        response = submit(client)
        assert response.status_code == 201
        assert response.json()["isApproved"] is False

        notice = store.collection("notification").find_one({"title": "New Feedback"})
        assert notice["audience"] == "admin"

    def test_text_or_video_required(self, client):
        response = submit(client, text=None)
        assert response.status_code == 400
        assert response.json() == {"error": "Either text or video URL is required"}

        assert submit(client, text=None, videoUrl="https://youtu.be/abc").status_code == 201

    def test_name_required(self, client):
        response = submit(client, alumniName="")
        assert response.status_code == 400

    def test_rating_bounds(self, client):
        assert submit(client, rating=9).status_code == 400

    def test_visibility(self, client, admin_headers, user_headers):
        created = submit(client).json()

        assert client.get("/api/feedback").json() == []
        assert client.get("/api/feedback", headers=user_headers).json() == []
        assert len(client.get("/api/feedback", headers=admin_headers).json()) == 1
        assert client.get(f"/api/feedback/{created['id']}").status_code == 401
        assert client.get(f"/api/feedback/{created['id']}", headers=user_headers).status_code == 403

        approved = client.patch(f"/api/feedback/{created['id']}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["isApproved"] is True

        assert len(client.get("/api/feedback").json()) == 1
        assert client.get(f"/api/feedback/{created['id']}").status_code == 200

    def test_unknown_alumni_id_dropped(self, client):
        created = submit(client, alumniId="64b7f0c2a1b2c3d4e5f60718").json()
        assert created.get("alumniId") is None

    def test_delete(self, client, admin_headers, user_headers):
        created = submit(client).json()
        assert client.delete(f"/api/feedback/{created['id']}", headers=user_headers).status_code == 403
        assert client.delete(f"/api/feedback/{created['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/feedback/{created['id']}", headers=admin_headers).status_code == 404
