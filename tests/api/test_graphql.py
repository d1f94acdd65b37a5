import json


def _gql(client, query, variables=None):
    response = client.post("/graphql", json={"query": query, "variables": variables or {}})
    assert response.status_code == 200
    return response.json()


def test_trigger_and_query_active_quests(client):
    created = _gql(
        client,
        """
        mutation Trigger($conversationId: String!) {
          triggerQuestCreation(conversationId: $conversationId, questMaster: "The Mentor") {
            questId
            questMaster
            status
            miniAppUrl
          }
        }
        """,
        {"conversationId": "conv-1"},
    )["data"]["triggerQuestCreation"]
    assert created["questMaster"] == "The Mentor"
    assert created["status"] == "ACTIVE"
    assert created["miniAppUrl"].endswith("type=social_challenge")

    active = _gql(client, "{ activeQuests(conversationId: \"conv-1\") { questId title } }")
    assert [q["questId"] for q in active["data"]["activeQuests"]] == [created["questId"]]


def test_join_and_complete_mutations(client, quest_id):
    joined = _gql(
        client,
        "mutation($q: String!) { joinQuest(questId: $q, userId: \"alice\") }",
        {"q": quest_id},
    )
    assert joined["data"]["joinQuest"] is True

    completed = _gql(
        client,
        "mutation($q: String!) { completeQuest(questId: $q, userId: \"alice\") { newLevel rewards { xp } } }",
        {"q": quest_id},
    )["data"]["completeQuest"]
    assert completed == {"newLevel": 2, "rewards": {"xp": 100}}

    stats = _gql(client, "{ userStats(userId: \"alice\") { xp level questsCompleted } }")
    assert stats["data"]["userStats"] == {"xp": 100, "level": 2, "questsCompleted": 1}


def test_domain_errors_surface_in_errors(client):
    body = _gql(client, "{ quest(questId: \"QUESZ9Z9Z9\") { questId } }")
    assert body["data"] is None
    assert "not found" in body["errors"][0]["message"]
    assert body["errors"][0]["extensions"]["kind"] == "QuestNotFound"


def test_internal_errors_are_masked(client, orchestrator, monkeypatch):
    def explode(*args):
        raise RuntimeError("db password=hunter2")

    monkeypatch.setattr(orchestrator, "get_user_stats", explode)
    body = _gql(client, "{ userStats(userId: \"a\") { xp } }")
    error = body["errors"][0]
    assert error["message"] == "Internal error"
    assert error["extensions"] == {"kind": "InternalError"}
    assert "hunter2" not in json.dumps(body)


def test_mutation_errors_carry_kind(client, quest_id):
    body = _gql(
        client,
        "mutation($q: String!) { completeQuest(questId: $q, userId: \"mallory\") { newLevel } }",
        {"q": quest_id},
    )
    assert body["errors"][0]["extensions"]["kind"] == "NotAParticipant"
