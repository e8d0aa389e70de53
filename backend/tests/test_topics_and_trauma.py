from eume.crud import topic as crud_topic
from eume.crud import trauma as crud_trauma


def test_record_outcome_updates_rate(db):
    crud_topic.record_outcome(db, "device-1", ["가족", "고향"], True)
    topic = crud_topic.record_outcome(db, "device-1", ["고향", "가족"], False)

    assert topic.total_count == 2
    assert topic.success_count == 1
    assert topic.success_rate == 0.5
    assert 0.0 <= topic.success_rate <= 1.0
    assert topic.keywords == ["가족", "고향"]


def test_failure_keeps_last_success_at(db):
    first = crud_topic.record_outcome(db, "device-1", ["노래"], True)
    last_success = first.last_success_at

    topic = crud_topic.record_outcome(db, "device-1", ["노래"], False)

    assert topic.last_success_at == last_success


def test_first_failure_has_no_last_success(db):
    topic = crud_topic.record_outcome(db, "device-1", ["병원"], False)

    assert topic.success_rate == 0.0
    assert topic.last_success_at is None


def test_effectiveness_shrinks_toward_neutral(db):
    assert crud_topic.get_effectiveness(db, "device-1", ["꽃"]) == 0.5

    crud_topic.record_outcome(db, "device-1", ["꽃"], True)
    assert crud_topic.get_effectiveness(db, "device-1", ["꽃"]) == 0.75

    crud_topic.record_outcome(db, "device-1", ["꽃"], True)
    crud_topic.record_outcome(db, "device-1", ["꽃"], False)
    assert crud_topic.get_effectiveness(db, "device-1", ["꽃"]) == 2 / 3


def test_top_topics_need_two_observations(db):
    crud_topic.record_outcome(db, "device-1", ["바다"], True)
    for outcome in (True, False):
        crud_topic.record_outcome(db, "device-1", ["산"], outcome)
    for outcome in (True, True):
        crud_topic.record_outcome(db, "device-1", ["시장"], outcome)

    topics = crud_topic.get_top_effective_topics(db, "device-1")

    assert [t.keywords for t in topics] == [["시장"], ["산"]]


def test_trauma_match_is_case_insensitive_substring(db):
    crud_trauma.save_trauma_info(db, "device-1", ["War", "사고"], "교통사고 경험")

    result = crud_trauma.check_for_trauma_content(db, "device-1", "the WAR years and 교통사고")

    assert result == {"has_match": True, "matched_keywords": ["War", "사고"]}


def test_trauma_without_record_never_matches(db):
    result = crud_trauma.check_for_trauma_content(db, "device-1", "전쟁")

    assert result == {"has_match": False, "matched_keywords": []}


def test_empty_trauma_keyword_is_ignored(db):
    crud_trauma.save_trauma_info(db, "device-1", [""])

    assert crud_trauma.check_for_trauma_content(db, "device-1", "아무 말")["has_match"] is False


def test_save_trauma_replaces_existing(db):
    crud_trauma.save_trauma_info(db, "device-1", ["전쟁"])
    crud_trauma.save_trauma_info(db, "device-1", ["화재"], "새 설명")

    trauma = crud_trauma.get_trauma_info(db, "device-1")
    assert trauma.trauma_keywords == ["화재"]
    assert trauma.detailed_description == "새 설명"
    assert crud_trauma.check_for_trauma_content(db, "device-1", "전쟁")["has_match"] is False


def test_delete_trauma_info(db):
    crud_trauma.save_trauma_info(db, "device-1", ["전쟁"])

    assert crud_trauma.delete_trauma_info(db, "device-1") is True
    assert crud_trauma.get_trauma_info(db, "device-1") is None
    assert crud_trauma.delete_trauma_info(db, "device-1") is False
