"""Tests for the research plan and topic proposals."""
from tests.conftest import HEAD, STAFF, STUDENT, actor_json


def _add_axis(client, title="Molecular Diagnostics"):
    resp = client.post("/api/research/plan/axes", json={"actor": actor_json(HEAD), "title": title})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _propose(client, axis_id, title, actor=STAFF, **extra):
    resp = client.post("/api/research/proposals", json={
        "actor": actor_json(actor),
        "payload": {"title": title, "axis_id": axis_id, **extra},
    })
    return resp


def _decide(client, proposal_id, decision, actor=HEAD):
    return client.post(f"/api/research/proposals/{proposal_id}/decision", json={
        "actor": actor_json(actor), "decision": decision,
    })


class TestResearchPlan:

    def test_axis_requires_reviewer(self, client):
        resp = client.post("/api/research/plan/axes", json={"actor": actor_json(STAFF), "title": "Genomics"})
        assert resp.status_code == 403

    def test_plan_lists_axes_with_topics(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "CRISPR screening of resistance genes").json()["proposal"]
        _decide(client, proposal["request_id"], "APPROVED")

        plan = client.get("/api/research/plan").json()
        assert len(plan) == 1
        assert [t["title"] for t in plan[0]["topics"]] == ["CRISPR screening of resistance genes"]
        assert plan[0]["topics"][0]["status"] == "AVAILABLE"
        assert plan[0]["topics"][0]["proposal_id"] == proposal["request_id"]

    def test_topic_with_student_starts_in_progress(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging",
                            student_name="Omar Tarek", degree="PhD").json()["proposal"]
        _decide(client, proposal["request_id"], "APPROVED")
        topic = client.get("/api/research/plan").json()[0]["topics"][0]
        assert topic["status"] == "IN_PROGRESS"

    def test_reviewer_sets_topic_status(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging").json()["proposal"]
        _decide(client, proposal["request_id"], "APPROVED")
        topic = client.get("/api/research/plan").json()[0]["topics"][0]

        resp = client.post(f"/api/research/plan/topics/{topic['topic_id']}/status",
                           json={"actor": actor_json(HEAD), "status": "COMPLETED"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "COMPLETED"

    def test_unknown_topic_returns_404(self, client):
        resp = client.post("/api/research/plan/topics/nope/status",
                           json={"actor": actor_json(HEAD), "status": "COMPLETED"})
        assert resp.status_code == 404


class TestDuplicateWarnings:

    def test_similar_title_warns_but_saves(self, client):
        axis = _add_axis(client)
        first = _propose(client, axis["axis_id"], "Antibiotic resistance in E. coli").json()["proposal"]
        _decide(client, first["request_id"], "APPROVED")

        resp = _propose(client, axis["axis_id"], "Antibiotic resistance", actor=STUDENT)
        assert resp.status_code == 201
        body = resp.json()
        assert body["proposal"]["status"] == "PENDING"
        assert body["similar_titles"] == ["Antibiotic resistance in E. coli"]

    def test_similarity_is_case_sensitive(self, client):
        axis = _add_axis(client)
        first = _propose(client, axis["axis_id"], "Antibiotic resistance in E. coli").json()["proposal"]
        _decide(client, first["request_id"], "APPROVED")
        resp = client.get("/api/research/similar", params={"title": "antibiotic resistance"})
        assert resp.json() == {"candidate": "antibiotic resistance", "similar_titles": []}

    def test_short_candidate_never_warns(self, client):
        axis = _add_axis(client)
        first = _propose(client, axis["axis_id"], "Gene expression atlas").json()["proposal"]
        _decide(client, first["request_id"], "APPROVED")
        assert client.get("/api/research/similar", params={"title": "Gene"}).json()["similar_titles"] == []


class TestProposalWorkflow:

    def test_unknown_axis_rejected(self, client):
        resp = _propose(client, "missing-axis", "Biofilm imaging")
        assert resp.status_code == 422
        assert resp.json()["detail"]["field"] == "axis_id"

    def test_blank_title_rejected(self, client):
        axis = _add_axis(client)
        assert _propose(client, axis["axis_id"], "   ").status_code == 422

    def test_modification_requested_then_resubmitted(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging").json()["proposal"]
        resp = _decide(client, proposal["request_id"], "MODIFICATION_REQUESTED")
        assert resp.json()["status"] == "MODIFICATION_REQUESTED"

        resp = client.put(f"/api/research/proposals/{proposal['request_id']}", json={
            "actor": actor_json(STAFF),
            "payload": {"title": "Confocal biofilm imaging", "applied_goal": "Hospital surfaces"},
        })
        assert resp.status_code == 200
        data = resp.json()["proposal"]
        assert data["status"] == "PENDING"
        assert data["title"] == "Confocal biofilm imaging"
        assert data["version"] == 3

    def test_decision_needs_reviewer(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging").json()["proposal"]
        assert _decide(client, proposal["request_id"], "APPROVED", actor=STUDENT).status_code == 403

    def test_rejected_proposal_is_final(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging").json()["proposal"]
        _decide(client, proposal["request_id"], "REJECTED")
        assert _decide(client, proposal["request_id"], "APPROVED").status_code == 409
        assert client.get("/api/research/plan").json()[0]["topics"] == []

    def test_cancel_twice(self, client):
        axis = _add_axis(client)
        proposal = _propose(client, axis["axis_id"], "Biofilm imaging").json()["proposal"]
        url = f"/api/research/proposals/{proposal['request_id']}/cancel"
        assert client.post(url, json={"actor": actor_json(STAFF)}).json()["status"] == "CANCELLED"
        assert client.post(url, json={"actor": actor_json(STAFF)}).status_code == 409
